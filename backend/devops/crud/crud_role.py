"""角色 CRUD 操作"""
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from devops.crud.base import CRUDBase
from devops.models.user import Role, ROLE_ADMIN, ROLE_OPERATOR, ROLE_DEVELOP, ROLE_VIEWER

DEFAULT_ROLES = [
    {"name": "超级管理员", "code": ROLE_ADMIN, "description": "拥有所有权限"},
    {"name": "运维人员", "code": ROLE_OPERATOR, "description": "运维操作权限"},
    {"name": "开发人员", "code": ROLE_DEVELOP, "description": "开发相关权限"},
    {"name": "只读用户", "code": ROLE_VIEWER, "description": "只读权限"},
]


class CRUDRole(CRUDBase[Role, BaseModel, BaseModel]):
    """角色 CRUD 操作类"""

    def get_by_code(self, db: Session, *, code: str) -> Optional[Role]:
        return db.query(Role).filter(Role.code == code).first()

    def get_all(self, db: Session) -> List[Role]:
        return db.query(Role).order_by(Role.created_at.asc()).all()

    def get_by_ids(self, db: Session, *, ids: List) -> List[Role]:
        if not ids:
            return []
        return db.query(Role).filter(Role.id.in_(ids)).all()

    def init_default_roles(self, db: Session) -> None:
        """初始化内置角色（已存在则跳过）"""
        for data in DEFAULT_ROLES:
            if self.get_by_code(db, code=data["code"]) is None:
                db.add(Role(**data))
        db.commit()


role = CRUDRole(Role)
