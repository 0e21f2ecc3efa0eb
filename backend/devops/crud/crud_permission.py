"""权限 CRUD 操作"""
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from devops.crud.base import CRUDBase
from devops.models.user import Permission, Role, User
from devops.schemas.permission import PermissionCreate, PermissionUpdate

# 默认权限: (名称, 权限码, 类型, 资源, 操作)
DEFAULT_PERMISSIONS = [
    # 用户管理
    ("查看用户", "user:view", "api", "user", "view"),
    ("创建用户", "user:create", "api", "user", "create"),
    ("更新用户", "user:update", "api", "user", "update"),
    ("删除用户", "user:delete", "api", "user", "delete"),
    # 角色管理
    ("查看角色", "role:view", "api", "role", "view"),
    ("创建角色", "role:create", "api", "role", "create"),
    ("更新角色", "role:update", "api", "role", "update"),
    ("删除角色", "role:delete", "api", "role", "delete"),
    # 权限管理
    ("查看权限", "permission:view", "api", "permission", "view"),
    ("创建权限", "permission:create", "api", "permission", "create"),
    ("更新权限", "permission:update", "api", "permission", "update"),
    ("删除权限", "permission:delete", "api", "permission", "delete"),
    # 分组管理
    ("查看分组", "group:view", "api", "group", "view"),
    ("创建分组", "group:create", "api", "group", "create"),
    ("更新分组", "group:update", "api", "group", "update"),
    ("删除分组", "group:delete", "api", "group", "delete"),
    # 主机管理
    ("查看主机", "host:view", "api", "host", "view"),
    ("创建主机", "host:create", "api", "host", "create"),
    ("更新主机", "host:update", "api", "host", "update"),
    ("删除主机", "host:delete", "api", "host", "delete"),
    ("连接主机", "host:connect", "api", "host", "execute"),
    # K8s 管理
    ("查看集群", "cluster:view", "api", "cluster", "view"),
    ("创建集群", "cluster:create", "api", "cluster", "create"),
    ("更新集群", "cluster:update", "api", "cluster", "update"),
    ("删除集群", "cluster:delete", "api", "cluster", "delete"),
    ("应用YAML", "k8s:apply-yaml", "api", "cluster", "execute"),
]


def _method_matches(allowed: Optional[str], method: str) -> bool:
    methods = [m.strip().upper() for m in (allowed or "").split(",") if m.strip()]
    return method.upper() in methods


class CRUDPermission(CRUDBase[Permission, PermissionCreate, PermissionUpdate]):
    """权限 CRUD 操作类"""

    def get_by_code(self, db: Session, *, code: str) -> Optional[Permission]:
        return db.query(Permission).filter(Permission.code == code).first()

    def get_enabled(self, db: Session) -> List[Permission]:
        """返回所有启用的权限，按 sort 排序"""
        return (
            db.query(Permission)
            .filter(Permission.status == 1)
            .order_by(Permission.sort.asc(), Permission.code.asc())
            .all()
        )

    def get_by_ids(self, db: Session, *, ids: List) -> List[Permission]:
        if not ids:
            return []
        return db.query(Permission).filter(Permission.id.in_(ids)).all()

    def get_by_role_id(self, db: Session, *, role_id) -> List[Permission]:
        """获取角色的所有权限"""
        role = (
            db.query(Role)
            .options(joinedload(Role.permissions))
            .filter(Role.id == role_id)
            .first()
        )
        if role is None:
            return []
        return list(role.permissions)

    def get_by_user_id(self, db: Session, *, user_id) -> List[Permission]:
        """获取用户直接角色的启用权限

        Raises:
            LookupError: 用户不存在
        """
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise LookupError(f"user {user_id} not found")
        if user.role_id is None:
            return []
        return (
            db.query(Permission)
            .join(Permission.roles)
            .filter(Role.id == user.role_id, Permission.status == 1)
            .all()
        )

    def get_by_path(self, db: Session, *, path: str, method: str = "") -> Optional[Permission]:
        """根据 API 路由模板和方法获取权限，未配置时返回 None"""
        candidates = (
            db.query(Permission)
            .filter(Permission.path == path, Permission.status == 1)
            .order_by(Permission.sort.asc())
            .all()
        )
        for perm in candidates:
            if not method or _method_matches(perm.method, method):
                return perm
        return None

    def set_role_permissions(self, db: Session, *, role: Role, permission_ids: List) -> Role:
        """整体替换角色的权限"""
        role.permissions = self.get_by_ids(db, ids=permission_ids)
        db.add(role)
        db.commit()
        db.refresh(role)
        return role

    def init_default_permissions(self, db: Session) -> int:
        """初始化默认权限，返回新建数量"""
        created = 0
        for index, (name, code, perm_type, resource, action) in enumerate(DEFAULT_PERMISSIONS):
            if self.get_by_code(db, code=code) is not None:
                continue
            db.add(Permission(
                name=name,
                code=code,
                type=perm_type,
                resource=resource,
                action=action,
                sort=index,
                status=1,
            ))
            created += 1
        db.commit()
        return created


permission = CRUDPermission(Permission)
