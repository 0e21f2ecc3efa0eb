"""用户分组服务，成员或角色变化会清空权限缓存"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from devops import crud
from devops.core.errors import ConflictError, NotFoundError, ValidationError
from devops.models.group import UserGroup
from devops.schemas.group import GroupCreate, GroupNode, GroupUpdate
from devops.services.permission_cache import PermissionCache
from devops.services.tree import build_tree

logger = logging.getLogger(__name__)


class GroupService:

    def __init__(self, db: Session, cache: PermissionCache):
        self.db = db
        self.cache = cache

    def get(self, group_id) -> UserGroup:
        group = crud.group.get_detail(self.db, id=group_id)
        if group is None:
            raise NotFoundError("分组不存在")
        return group

    def list(self, keyword: Optional[str] = None, skip: int = 0, limit: int = 20) -> Tuple[List[UserGroup], int]:
        return crud.group.get_multi_filtered(self.db, keyword=keyword, skip=skip, limit=limit)

    def tree(self) -> List[GroupNode]:
        def to_node(group: UserGroup, children: List[GroupNode]) -> GroupNode:
            return GroupNode(
                id=group.id,
                name=group.name,
                description=group.description,
                parent_id=group.parent_id,
                children=children,
            )

        return build_tree(crud.group.get_all(self.db), to_node)

    def create(self, obj_in: GroupCreate, created_by=None) -> UserGroup:
        if crud.group.get_by_name(self.db, name=obj_in.name):
            raise ConflictError(f"分组名已存在: {obj_in.name}")
        if obj_in.parent_id is not None:
            self.get(obj_in.parent_id)
        data = obj_in.model_dump()
        data["created_by"] = created_by
        return crud.group.create(self.db, obj_in=data)

    def update(self, group_id, obj_in: GroupUpdate) -> UserGroup:
        group = self.get(group_id)
        if obj_in.name and obj_in.name != group.name and crud.group.get_by_name(self.db, name=obj_in.name):
            raise ConflictError(f"分组名已存在: {obj_in.name}")
        if obj_in.parent_id is not None:
            if obj_in.parent_id == group.id:
                raise ValidationError("父分组不能是自身")
            self.get(obj_in.parent_id)
        return crud.group.update(self.db, db_obj=group, obj_in=obj_in)

    def delete(self, group_id) -> None:
        group = self.get(group_id)
        if self.db.query(UserGroup).filter(UserGroup.parent_id == group.id).count():
            raise ValidationError("存在子分组，无法删除")
        group.users = []
        group.roles = []
        self.db.delete(group)
        self.db.commit()
        self.cache.invalidate_all()

    def add_members(self, group_id, user_ids: List) -> UserGroup:
        group = crud.group.add_users(self.db, group=self.get(group_id), user_ids=user_ids)
        for user_id in user_ids:
            self.cache.invalidate(user_id)
        return group

    def remove_member(self, group_id, user_id) -> UserGroup:
        group = crud.group.remove_user(self.db, group=self.get(group_id), user_id=user_id)
        self.cache.invalidate(user_id)
        return group

    def set_roles(self, group_id, role_ids: List) -> UserGroup:
        group = crud.group.set_roles(self.db, group=self.get(group_id), role_ids=role_ids)
        self.cache.invalidate_all()
        logger.info("Group %s roles replaced (%d)", group.name, len(group.roles))
        return group
