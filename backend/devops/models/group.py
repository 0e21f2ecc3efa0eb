"""用户分组与资源级权限模型"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from devops.db.base_class import Base
from devops.models.user import user_group_members, user_group_roles


class UserGroup(Base):
    """用户分组表（支持层级）"""
    __tablename__ = "user_groups"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    parent_id = Column(Uuid, ForeignKey("user_groups.id"), nullable=True, index=True)
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = relationship("User", secondary=user_group_members, back_populates="groups")
    roles = relationship("Role", secondary=user_group_roles, back_populates="groups")


class ResourcePermission(Base):
    """资源级权限表

    resource_id 为空表示对该类型的所有资源生效。
    actions 为 JSON 数组文本，如 ["view","update"]；历史数据可能是逗号分隔。
    conditions 为不透明的 JSON 条件，由调用方解释。
    """
    __tablename__ = "resource_permissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    role_id = Column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False, index=True)
    resource_id = Column(Uuid, nullable=True, index=True)
    actions = Column(String(255), nullable=False)
    conditions = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    role = relationship("Role")
