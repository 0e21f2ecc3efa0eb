"""K8s 集群与 YAML 应用 API"""
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from devops.api import deps
from devops.core.errors import ServiceError, raise_http_error
from devops.schemas.auth import Principal
from devops.schemas.k8s import (
    ApplyYAMLRequest,
    ApplyYAMLResponse,
    ClusterCreate,
    ClusterListResponse,
    ClusterOverview,
    ClusterResponse,
    ClusterUpdate,
    FormatYAMLRequest,
    YAMLHistoryResponse,
)
from devops.services.cluster_service import ClusterService
from devops.services.k8s_yaml_service import K8sYAMLService

router = APIRouter()


@router.get("/", response_model=ClusterListResponse, dependencies=[Depends(deps.require_permission("cluster:view"))])
def list_clusters(
    env_code: Optional[str] = None,
    keyword: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
    service: ClusterService = Depends(deps.get_cluster_service),
) -> Any:
    items, total = service.list(env_code=env_code, keyword=keyword, skip=skip, limit=limit)
    return {"total": total, "items": items}


@router.post("/", response_model=ClusterResponse, status_code=status.HTTP_201_CREATED)
def create_cluster(
    *,
    cluster_in: ClusterCreate,
    principal: Principal = Depends(deps.require_permission("cluster:create")),
    service: ClusterService = Depends(deps.get_cluster_service),
) -> Any:
    try:
        return service.create(cluster_in, created_by=principal.user_id)
    except ServiceError as e:
        raise_http_error(e)


@router.post("/format", dependencies=[Depends(deps.require_permission("cluster:view"))])
def format_yaml(
    body: FormatYAMLRequest,
    service: K8sYAMLService = Depends(deps.get_k8s_yaml_service),
) -> Any:
    """格式化 YAML，不访问集群"""
    try:
        return {"yaml": service.format_yaml(body.yaml)}
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{id}/format", dependencies=[Depends(deps.require_permission("cluster:view"))])
def format_cluster_yaml(
    id: UUID,
    body: FormatYAMLRequest,
    service: K8sYAMLService = Depends(deps.get_k8s_yaml_service),
) -> Any:
    try:
        service.cluster_service.get(id)
        return {"yaml": service.format_yaml(body.yaml)}
    except ServiceError as e:
        raise_http_error(e)


@router.get("/{id}",response_model=ClusterResponse, dependencies=[Depends(deps.require_permission("cluster:view"))])
def get_cluster(id: UUID, service: ClusterService = Depends(deps.get_cluster_service)) -> Any:
    try:
        return service.get(id)
    except ServiceError as e:
        raise_http_error(e)


@router.put("/{id}", response_model=ClusterResponse, dependencies=[Depends(deps.require_permission("cluster:update"))])
def update_cluster(
    *,
    id: UUID,
    cluster_in: ClusterUpdate,
    service: ClusterService = Depends(deps.get_cluster_service),
) -> Any:
    try:
        return service.update(id, cluster_in)
    except ServiceError as e:
        raise_http_error(e)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(deps.require_permission("cluster:delete"))])
def delete_cluster(id: UUID, service: ClusterService = Depends(deps.get_cluster_service)) -> None:
    try:
        service.delete(id)
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{id}/test", response_model=ClusterOverview, dependencies=[Depends(deps.require_permission("cluster:view"))])
def test_connection(id: UUID, service: ClusterService = Depends(deps.get_cluster_service)) -> Any:
    """测试连接并刷新集群状态"""
    try:
        return service.test_connection(id)
    except ServiceError as e:
        raise_http_error(e)


@router.get("/{id}/overview", response_model=ClusterOverview, dependencies=[Depends(deps.require_permission("cluster:view"))])
def get_overview(id: UUID, service: ClusterService = Depends(deps.get_cluster_service)) -> Any:
    try:
        return service.overview(id)
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{id}/apply", response_model=ApplyYAMLResponse)
def apply_yaml(
    *,
    id: UUID,
    body: ApplyYAMLRequest,
    principal: Principal = Depends(deps.require_any_permission("k8s:apply-yaml")),
    service: K8sYAMLService = Depends(deps.get_k8s_yaml_service),
) -> Any:
    try:
        results = service.apply_yaml(
            id,
            body.yaml,
            namespace=body.namespace,
            dry_run=body.dry_run,
            actor=principal,
            action=body.action,
        )
    except ServiceError as e:
        raise_http_error(e)
    verb = "validated" if body.dry_run else "applied"
    return {"message": f"{len(results)} object(s) {verb}", "results": results}


@router.get("/{id}/yaml", dependencies=[Depends(deps.require_permission("cluster:view"))])
def get_resource_yaml(
    id: UUID,
    kind: str = Query(...),
    name: str = Query(...),
    namespace: Optional[str] = None,
    api_version: Optional[str] = Query(None, alias="apiVersion"),
    service: K8sYAMLService = Depends(deps.get_k8s_yaml_service),
) -> Any:
    try:
        return {"yaml": service.get_resource_yaml(id, kind, name, namespace=namespace, api_version=api_version)}
    except ServiceError as e:
        raise_http_error(e)


@router.get(
    "/{id}/history",
    response_model=List[YAMLHistoryResponse],
    dependencies=[Depends(deps.require_permission("cluster:view"))],
)
def list_yaml_history(
    id: UUID,
    kind: Optional[str] = None,
    namespace: Optional[str] = None,
    name: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    service: K8sYAMLService = Depends(deps.get_k8s_yaml_service),
) -> Any:
    try:
        return service.list_yaml_history(id, kind=kind, namespace=namespace, name=name, limit=limit)
    except ServiceError as e:
        raise_http_error(e)
