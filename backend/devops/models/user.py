"""用户、角色、权限模型"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Table, Uuid
from sqlalchemy.orm import relationship

from devops.db.base_class import Base

# 角色-权限关联表
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)

# 用户-分组关联表
user_group_members = Table(
    "user_group_members",
    Base.metadata,
    Column("user_group_id", Uuid, ForeignKey("user_groups.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

# 分组-角色关联表
user_group_roles = Table(
    "user_group_roles",
    Base.metadata,
    Column("user_group_id", Uuid, ForeignKey("user_groups.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

# 内置角色编码
ROLE_ADMIN = "admin"
ROLE_OPERATOR = "operator"
ROLE_DEVELOP = "develop"
ROLE_VIEWER = "viewer"


class User(Base):
    """用户表"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    email = Column(String(100), unique=True, nullable=True)
    phone = Column(String(20), nullable=True)
    real_name = Column(String(50), nullable=True)
    avatar = Column(String(255), nullable=True)
    status = Column(Integer, nullable=False, default=1)  # 1: 启用, 0: 禁用
    role_id = Column(Uuid, ForeignKey("roles.id"), nullable=True, index=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    role = relationship("Role", back_populates="users")
    groups = relationship("UserGroup", secondary=user_group_members, back_populates="users")

    @property
    def role_code(self) -> str:
        return self.role.code if self.role else ""


class Role(Base):
    """角色表"""
    __tablename__ = "roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), unique=True, nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    users = relationship("User", back_populates="role")
    permissions = relationship("Permission", secondary=role_permissions, back_populates="roles")
    groups = relationship("UserGroup", secondary=user_group_roles, back_populates="roles")


class Permission(Base):
    """权限表

    code 采用 `<resource>:<action>` 约定，例如 host:create。
    path/method 用于按 API 路由动态鉴权，method 可为逗号分隔的多个方法。
    """
    __tablename__ = "permissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    code = Column(String(100), unique=True, nullable=False, index=True)
    type = Column(String(20), nullable=False, default="api")  # menu, button, api
    resource = Column(String(50), nullable=True, index=True)  # user, host, app, config, cluster
    action = Column(String(50), nullable=True)  # view, create, update, delete, execute
    parent_id = Column(Uuid, ForeignKey("permissions.id"), nullable=True)
    path = Column(String(255), nullable=True)
    method = Column(String(50), nullable=True)
    icon = Column(String(50), nullable=True)
    sort = Column(Integer, nullable=False, default=0)
    status = Column(Integer, nullable=False, default=1)  # 1: 启用, 0: 禁用
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    roles = relationship("Role", secondary=role_permissions, back_populates="permissions")
