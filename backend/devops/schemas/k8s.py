"""Kubernetes 集群与 YAML 相关的 Pydantic 模型"""
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ClusterCreate(BaseModel):
    name: str = Field(..., max_length=100)
    code: str = Field(..., max_length=50)
    api_server: str = Field(..., max_length=255)
    kubeconfig: str = Field(..., description="明文 kubeconfig，入库前加密")
    env_code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=255)


class ClusterUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    api_server: Optional[str] = Field(None, max_length=255)
    kubeconfig: Optional[str] = None
    env_code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=255)


class ClusterResponse(BaseModel):
    """集群响应（不包含 kubeconfig）"""
    id: UUID
    name: str
    code: str
    version: Optional[str] = None
    api_server: str
    description: Optional[str] = None
    env_code: Optional[str] = None
    status: int
    node_count: int
    pod_count: int
    last_check_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ClusterListResponse(BaseModel):
    total: int
    items: List[ClusterResponse]


class ClusterOverview(BaseModel):
    version: str = ""
    node_count: int = 0
    ready_nodes: int = 0
    pod_count: int = 0
    running_pods: int = 0
    namespace_count: int = 0
    deployment_count: int = 0
    service_count: int = 0


class ApplyYAMLRequest(BaseModel):
    yaml: str = Field(..., description="一个或多个 YAML/JSON 文档")
    namespace: Optional[str] = Field(None, description="命名空间级资源缺省使用的命名空间")
    dry_run: bool = False
    action: Optional[str] = Field(None, description="记录到历史中的操作名，默认 apply")


class ApplyResult(BaseModel):
    kind: str
    name: str
    namespace: Optional[str] = None
    action: str  # applied / validated


class ApplyYAMLResponse(BaseModel):
    message: str
    results: List[ApplyResult]


class FormatYAMLRequest(BaseModel):
    yaml: str


class YAMLHistoryResponse(BaseModel):
    id: UUID
    cluster_id: UUID
    kind: str
    namespace: str
    name: str
    yaml: str
    action: Optional[str] = None
    created_by: Optional[UUID] = None
    username: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
