"""资源权限 CRUD 操作"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from devops.crud.base import CRUDBase
from devops.models.group import ResourcePermission
from devops.schemas.permission import ResourcePermissionCreate, ResourcePermissionUpdate


class CRUDResourcePermission(
    CRUDBase[ResourcePermission, ResourcePermissionCreate, ResourcePermissionUpdate]
):
    """资源权限 CRUD 操作类"""

    def get_by_roles_and_resource_type(
        self, db: Session, *, role_ids: List, resource_type: str
    ) -> List[ResourcePermission]:
        """获取多个角色对某类资源的权限"""
        if not role_ids:
            return []
        return (
            db.query(ResourcePermission)
            .filter(
                ResourcePermission.role_id.in_(role_ids),
                ResourcePermission.resource_type == resource_type,
            )
            .all()
        )

    def get_multi_filtered(
        self,
        db: Session,
        *,
        role_id=None,
        resource_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[ResourcePermission], int]:
        query = db.query(ResourcePermission)
        if role_id is not None:
            query = query.filter(ResourcePermission.role_id == role_id)
        if resource_type:
            query = query.filter(ResourcePermission.resource_type == resource_type)
        total = query.count()
        items = query.order_by(ResourcePermission.created_at.desc()).offset(skip).limit(limit).all()
        return items, total


resource_permission = CRUDResourcePermission(ResourcePermission)
