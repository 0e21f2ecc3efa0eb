import logging

from sqlalchemy.orm import Session

from devops import crud
from devops.core.config import settings
from devops.db.base import Base
from devops.models.user import ROLE_ADMIN
from devops.schemas.user import UserCreate

logger = logging.getLogger(__name__)


def init_db(db: Session) -> None:
    """建表并写入内置角色、默认权限和初始管理员"""
    Base.metadata.create_all(bind=db.get_bind())
    logger.info("Tables created")

    crud.role.init_default_roles(db)
    created = crud.permission.init_default_permissions(db)
    if created:
        logger.info("Created %d default permissions", created)

    create_admin_user(db)


def create_admin_user(db: Session) -> None:
    if crud.user.get_by_username(db, username=settings.ADMIN_USERNAME):
        return

    admin_role = crud.role.get_by_code(db, code=ROLE_ADMIN)
    crud.user.create(db, obj_in=UserCreate(
        username=settings.ADMIN_USERNAME,
        password=settings.ADMIN_PASSWORD,
        email=settings.ADMIN_EMAIL,
        real_name="管理员",
        role_id=admin_role.id if admin_role else None,
    ))
    logger.info("Created admin user: %s", settings.ADMIN_USERNAME)
