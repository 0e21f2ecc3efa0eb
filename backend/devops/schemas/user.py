"""用户与角色相关的 Pydantic 模型"""
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class RoleBrief(BaseModel):
    id: UUID
    name: str
    code: str

    class Config:
        from_attributes = True


class RoleResponse(RoleBrief):
    description: Optional[str] = None
    created_at: datetime


class RolePermissionsUpdate(BaseModel):
    """设置角色权限（整体替换）"""
    permission_ids: List[UUID] = []


class UserCreate(BaseModel):
    """创建用户"""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    real_name: Optional[str] = Field(None, max_length=50)
    role_id: Optional[UUID] = None


class UserUpdate(BaseModel):
    """更新用户"""
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    real_name: Optional[str] = Field(None, max_length=50)
    avatar: Optional[str] = Field(None, max_length=255)
    status: Optional[int] = None
    role_id: Optional[UUID] = None
    password: Optional[str] = Field(None, min_length=6, max_length=100)


class UserResponse(BaseModel):
    """用户响应"""
    id: UUID
    username: str
    email: Optional[str] = None
    phone: Optional[str] = None
    real_name: Optional[str] = None
    avatar: Optional[str] = None
    status: int
    role_id: Optional[UUID] = None
    role: Optional[RoleBrief] = None
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    total: int
    items: List[UserResponse]
