"""用户分组 CRUD 操作"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from devops.crud.base import CRUDBase
from devops.models.group import UserGroup
from devops.models.user import Permission, Role, User, user_group_members
from devops.schemas.group import GroupCreate, GroupUpdate


class CRUDGroup(CRUDBase[UserGroup, GroupCreate, GroupUpdate]):
    """分组 CRUD 操作类"""

    def get_detail(self, db: Session, *, id) -> Optional[UserGroup]:
        """获取分组及其成员、角色"""
        return (
            db.query(UserGroup)
            .options(selectinload(UserGroup.users), selectinload(UserGroup.roles))
            .filter(UserGroup.id == id)
            .first()
        )

    def get_by_name(self, db: Session, *, name: str) -> Optional[UserGroup]:
        return db.query(UserGroup).filter(UserGroup.name == name).first()

    def get_all(self, db: Session) -> List[UserGroup]:
        return db.query(UserGroup).order_by(UserGroup.created_at.asc()).all()

    def get_multi_filtered(
        self,
        db: Session,
        *,
        keyword: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[UserGroup], int]:
        query = db.query(UserGroup)
        if keyword:
            query = query.filter(UserGroup.name.like(f"%{keyword}%"))
        total = query.count()
        items = (
            query.options(selectinload(UserGroup.users), selectinload(UserGroup.roles))
            .order_by(UserGroup.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def add_users(self, db: Session, *, group: UserGroup, user_ids: List) -> UserGroup:
        """添加成员，已是成员的忽略"""
        existing = {u.id for u in group.users}
        users = db.query(User).filter(User.id.in_(user_ids)).all() if user_ids else []
        for u in users:
            if u.id not in existing:
                group.users.append(u)
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    def remove_user(self, db: Session, *, group: UserGroup, user_id) -> UserGroup:
        group.users = [u for u in group.users if u.id != user_id]
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    def set_roles(self, db: Session, *, group: UserGroup, role_ids: List) -> UserGroup:
        """整体替换分组的角色"""
        group.roles = db.query(Role).filter(Role.id.in_(role_ids)).all() if role_ids else []
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    def get_by_user_id(self, db: Session, *, user_id) -> List[UserGroup]:
        """获取用户所在的分组"""
        return (
            db.query(UserGroup)
            .join(user_group_members, user_group_members.c.user_group_id == UserGroup.id)
            .filter(user_group_members.c.user_id == user_id)
            .all()
        )

    def get_role_ids_by_user_id(self, db: Session, *, user_id) -> List:
        """获取用户通过分组继承的角色 ID（去重）"""
        role_ids = []
        for group in self.get_by_user_id(db, user_id=user_id):
            for r in group.roles:
                if r.id not in role_ids:
                    role_ids.append(r.id)
        return role_ids

    def get_permissions_by_user_id(self, db: Session, *, user_id) -> List[Permission]:
        """获取用户通过分组角色继承的启用权限"""
        role_ids = self.get_role_ids_by_user_id(db, user_id=user_id)
        if not role_ids:
            return []
        return (
            db.query(Permission)
            .join(Permission.roles)
            .filter(Role.id.in_(role_ids), Permission.status == 1)
            .distinct()
            .all()
        )


group = CRUDGroup(UserGroup)
