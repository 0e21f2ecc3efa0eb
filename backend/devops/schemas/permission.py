"""权限与资源权限相关的 Pydantic 模型"""
import json
from typing import List, Optional, Union
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, validator


class PermissionBase(BaseModel):
    name: str = Field(..., max_length=50)
    code: str = Field(..., max_length=100, description="权限码，约定 <resource>:<action>")
    type: str = Field("api", description="menu / button / api")
    resource: Optional[str] = Field(None, max_length=50)
    action: Optional[str] = Field(None, max_length=50)
    parent_id: Optional[UUID] = None
    path: Optional[str] = Field(None, max_length=255)
    method: Optional[str] = Field(None, max_length=50)
    icon: Optional[str] = Field(None, max_length=50)
    sort: int = 0
    status: int = 1


class PermissionCreate(PermissionBase):
    pass


class PermissionUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    type: Optional[str] = None
    resource: Optional[str] = None
    action: Optional[str] = None
    parent_id: Optional[UUID] = None
    path: Optional[str] = None
    method: Optional[str] = None
    icon: Optional[str] = None
    sort: Optional[int] = None
    status: Optional[int] = None


class PermissionResponse(PermissionBase):
    id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class PermissionNode(PermissionResponse):
    """权限树节点"""
    children: List["PermissionNode"] = []


PermissionNode.model_rebuild()


def _dump_actions(v: Union[str, List[str]]) -> str:
    if isinstance(v, list):
        return json.dumps([str(a).strip() for a in v])
    return v


class ResourcePermissionCreate(BaseModel):
    role_id: UUID
    resource_type: str = Field(..., max_length=50)
    resource_id: Optional[UUID] = Field(None, description="为空表示该类型所有资源")
    actions: Union[List[str], str] = Field(..., description='["view","update"] 或 "*"')
    conditions: Optional[str] = None

    @validator("actions", pre=True)
    def normalize_actions(cls, v):
        return _dump_actions(v)


class ResourcePermissionUpdate(BaseModel):
    resource_id: Optional[UUID] = None
    actions: Optional[Union[List[str], str]] = None
    conditions: Optional[str] = None

    @validator("actions", pre=True)
    def normalize_actions(cls, v):
        if v is None:
            return v
        return _dump_actions(v)


class ResourcePermissionResponse(BaseModel):
    id: UUID
    role_id: UUID
    resource_type: str
    resource_id: Optional[UUID] = None
    actions: str
    conditions: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ResourcePermissionListResponse(BaseModel):
    total: int
    items: List[ResourcePermissionResponse]
