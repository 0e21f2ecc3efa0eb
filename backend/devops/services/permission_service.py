"""
权限解析服务

有效权限 = 用户直接角色的权限 ∪ 用户所在各分组的角色权限（按权限 ID 去重）。
结果按用户缓存在 PermissionCache 中；任何可能改变有效权限的变更都会清空缓存。
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from devops import crud
from devops.core.errors import ConflictError, NotFoundError, ValidationError
from devops.models.group import ResourcePermission
from devops.models.user import Permission, Role
from devops.schemas.permission import (
    PermissionCreate,
    PermissionNode,
    PermissionUpdate,
    ResourcePermissionCreate,
    ResourcePermissionUpdate,
)
from devops.services.permission_cache import PermissionCache
from devops.services.tree import build_tree

logger = logging.getLogger(__name__)

WILDCARD_ACTION = "*"


def parse_actions(raw: Optional[str]) -> List[str]:
    """解析 actions 字段：优先 JSON 数组，否则按逗号分隔"""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        value = None
    if isinstance(value, list):
        return [str(a).strip() for a in value if str(a).strip()]
    return [a.strip() for a in raw.split(",") if a.strip()]


def _parse_resource_id(resource_id: Any) -> Optional[uuid.UUID]:
    if isinstance(resource_id, uuid.UUID):
        return resource_id
    if not resource_id:
        return None
    try:
        return uuid.UUID(str(resource_id))
    except ValueError:
        return None


class PermissionService:
    """权限解析与管理"""

    def __init__(self, db: Session, cache: PermissionCache):
        self.db = db
        self.cache = cache

    # ==================== 权限解析 ====================

    def get_user_permissions(self, user_id) -> List[Permission]:
        """
        获取用户的有效权限

        Raises:
            NotFoundError: 用户不存在
        """
        try:
            direct = crud.permission.get_by_user_id(self.db, user_id=user_id)
        except LookupError as exc:
            raise NotFoundError(str(exc)) from exc
        inherited = crud.group.get_permissions_by_user_id(self.db, user_id=user_id)

        seen = set()
        merged = []
        for perm in list(direct) + list(inherited):
            if perm.id in seen:
                continue
            seen.add(perm.id)
            merged.append(perm)
        return merged

    def get_user_permission_codes(self, user_id) -> List[str]:
        return [p.code for p in self.get_user_permissions(user_id)]

    def has_permission(self, user_id, code: str) -> bool:
        """检查用户是否拥有权限码，优先读缓存；解析出错时返回 False"""
        allowed, found = self.cache.get(user_id, code)
        if found:
            return allowed

        try:
            codes = self.get_user_permission_codes(user_id)
        except Exception:
            logger.exception("Failed to resolve permissions for user %s", user_id)
            return False

        code_map: Dict[str, bool] = {c: True for c in codes}
        self.cache.set(user_id, code_map)
        return code_map.get(code, False)

    def has_any_permission(self, user_id, *codes: str) -> bool:
        return any(self.has_permission(user_id, code) for code in codes)

    def has_all_permissions(self, user_id, *codes: str) -> bool:
        return all(self.has_permission(user_id, code) for code in codes)

    def get_user_role_ids(self, user_id) -> List:
        """直接角色在前，其后为分组继承的角色，去重"""
        user = crud.user.get(self.db, id=user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")

        role_ids = []
        if user.role_id is not None:
            role_ids.append(user.role_id)
        for role_id in crud.group.get_role_ids_by_user_id(self.db, user_id=user_id):
            if role_id not in role_ids:
                role_ids.append(role_id)
        return role_ids

    def has_resource_permission(self, user_id, resource_type: str, resource_id: Any, action: str) -> bool:
        """
        资源级权限检查

        资源权限行的 resource_id 为空表示对该类型的所有资源生效；
        请求的 resource_id 为空或无法解析时按类型级检查处理。
        """
        try:
            role_ids = self.get_user_role_ids(user_id)
        except NotFoundError:
            return False
        if not role_ids:
            return False

        rows = crud.resource_permission.get_by_roles_and_resource_type(
            self.db, role_ids=role_ids, resource_type=resource_type
        )
        target = _parse_resource_id(resource_id)
        for row in rows:
            if row.resource_id is not None and target is not None and row.resource_id != target:
                continue
            actions = parse_actions(row.actions)
            if action in actions or WILDCARD_ACTION in actions:
                return True
        return False

    def get_required_permission(self, path: str, method: str) -> Optional[Permission]:
        """路由模板 + 方法对应的权限，未配置时返回 None"""
        return crud.permission.get_by_path(self.db, path=path, method=method)

    # ==================== 权限管理 ====================

    def list_permissions(self) -> List[Permission]:
        return self.db.query(Permission).order_by(Permission.sort.asc(), Permission.code.asc()).all()

    def get_permission(self, permission_id) -> Permission:
        perm = crud.permission.get(self.db, id=permission_id)
        if perm is None:
            raise NotFoundError("权限不存在")
        return perm

    def get_permission_tree(self) -> List[PermissionNode]:
        def to_node(perm: Permission, children: List[PermissionNode]) -> PermissionNode:
            node = PermissionNode.model_validate(perm)
            node.children = children
            return node

        return build_tree(self.list_permissions(), to_node)

    def create_permission(self, obj_in: PermissionCreate) -> Permission:
        if crud.permission.get_by_code(self.db, code=obj_in.code):
            raise ConflictError(f"权限码已存在: {obj_in.code}")
        if obj_in.parent_id is not None:
            self.get_permission(obj_in.parent_id)
        perm = crud.permission.create(self.db, obj_in=obj_in)
        self.cache.invalidate_all()
        return perm

    def update_permission(self, permission_id, obj_in: PermissionUpdate) -> Permission:
        perm = self.get_permission(permission_id)
        if obj_in.parent_id is not None:
            if obj_in.parent_id == perm.id:
                raise ValidationError("父权限不能是自身")
            self.get_permission(obj_in.parent_id)
        perm = crud.permission.update(self.db, db_obj=perm, obj_in=obj_in)
        self.cache.invalidate_all()
        return perm

    def delete_permission(self, permission_id) -> None:
        perm = self.get_permission(permission_id)
        if self.db.query(Permission).filter(Permission.parent_id == perm.id).count():
            raise ValidationError("存在子权限，无法删除")
        perm.roles = []
        self.db.delete(perm)
        self.db.commit()
        self.cache.invalidate_all()

    def get_role_permissions(self, role_id) -> List[Permission]:
        self._get_role(role_id)
        return crud.permission.get_by_role_id(self.db, role_id=role_id)

    def set_role_permissions(self, role_id, permission_ids: List) -> Role:
        role = self._get_role(role_id)
        role = crud.permission.set_role_permissions(self.db, role=role, permission_ids=permission_ids)
        self.cache.invalidate_all()
        logger.info("Role %s permissions replaced (%d)", role.code, len(role.permissions))
        return role

    def _get_role(self, role_id) -> Role:
        role = crud.role.get(self.db, id=role_id)
        if role is None:
            raise NotFoundError("角色不存在")
        return role

    # ==================== 资源权限管理 ====================

    def list_resource_permissions(
        self, role_id=None, resource_type: Optional[str] = None, skip: int = 0, limit: int = 20
    ) -> Tuple[List[ResourcePermission], int]:
        return crud.resource_permission.get_multi_filtered(
            self.db, role_id=role_id, resource_type=resource_type, skip=skip, limit=limit
        )

    def create_resource_permission(self, obj_in: ResourcePermissionCreate) -> ResourcePermission:
        self._get_role(obj_in.role_id)
        row = crud.resource_permission.create(self.db, obj_in=obj_in)
        self.cache.invalidate_all()
        return row

    def update_resource_permission(self, id, obj_in: ResourcePermissionUpdate) -> ResourcePermission:
        row = crud.resource_permission.get(self.db, id=id)
        if row is None:
            raise NotFoundError("资源权限不存在")
        row = crud.resource_permission.update(self.db, db_obj=row, obj_in=obj_in)
        self.cache.invalidate_all()
        return row

    def delete_resource_permission(self, id) -> None:
        if crud.resource_permission.remove(self.db, id=id) is None:
            raise NotFoundError("资源权限不存在")
        self.cache.invalidate_all()
