from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from devops.core.config import settings

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    数据库会话 Context Manager

    用于非 FastAPI 依赖注入场景（启动初始化、脚本）

    Usage:
        with get_db_session() as db:
            init_db(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
