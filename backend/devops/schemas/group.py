"""用户分组相关的 Pydantic 模型"""
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from devops.schemas.user import RoleBrief


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    parent_id: Optional[UUID] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    parent_id: Optional[UUID] = None


class GroupMember(BaseModel):
    id: UUID
    username: str
    real_name: Optional[str] = None

    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    created_at: datetime
    users: List[GroupMember] = []
    roles: List[RoleBrief] = []

    class Config:
        from_attributes = True


class GroupNode(BaseModel):
    """分组树节点"""
    id: UUID
    name: str
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    children: List["GroupNode"] = []

    class Config:
        from_attributes = True


GroupNode.model_rebuild()


class GroupListResponse(BaseModel):
    total: int
    items: List[GroupResponse]


class GroupMembersAdd(BaseModel):
    user_ids: List[UUID]


class GroupRolesSet(BaseModel):
    role_ids: List[UUID] = []
