"""权限与资源权限管理 API"""
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from devops.api import deps
from devops.core.errors import ServiceError, raise_http_error
from devops.schemas.permission import (
    PermissionCreate,
    PermissionNode,
    PermissionResponse,
    PermissionUpdate,
    ResourcePermissionCreate,
    ResourcePermissionListResponse,
    ResourcePermissionResponse,
    ResourcePermissionUpdate,
)
from devops.services.permission_service import PermissionService

router = APIRouter(dependencies=[Depends(deps.write_permission_check("permission"))])


@router.get("/", response_model=List[PermissionResponse])
def list_permissions(service: PermissionService = Depends(deps.get_permission_service)) -> Any:
    return service.list_permissions()


@router.get("/tree", response_model=List[PermissionNode])
def get_permission_tree(service: PermissionService = Depends(deps.get_permission_service)) -> Any:
    return service.get_permission_tree()


@router.post("/", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
def create_permission(
    *,
    permission_in: PermissionCreate,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    try:
        return service.create_permission(permission_in)
    except ServiceError as e:
        raise_http_error(e)


# ==================== 资源权限 ====================
# 放在 /{id} 之前，避免 "resources" 被当作权限 ID 解析

@router.get("/resources", response_model=ResourcePermissionListResponse)
def list_resource_permissions(
    role_id: Optional[UUID] = None,
    resource_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    items, total = service.list_resource_permissions(
        role_id=role_id, resource_type=resource_type, skip=skip, limit=limit
    )
    return {"total": total, "items": items}


@router.post("/resources", response_model=ResourcePermissionResponse, status_code=status.HTTP_201_CREATED)
def create_resource_permission(
    *,
    body: ResourcePermissionCreate,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    try:
        return service.create_resource_permission(body)
    except ServiceError as e:
        raise_http_error(e)


@router.put("/resources/{id}", response_model=ResourcePermissionResponse)
def update_resource_permission(
    *,
    id: UUID,
    body: ResourcePermissionUpdate,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    try:
        return service.update_resource_permission(id, body)
    except ServiceError as e:
        raise_http_error(e)


@router.delete("/resources/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resource_permission(
    id: UUID,
    service: PermissionService = Depends(deps.get_permission_service),
) -> None:
    try:
        service.delete_resource_permission(id)
    except ServiceError as e:
        raise_http_error(e)


# ==================== 单个权限 ====================

@router.get("/{id}", response_model=PermissionResponse)
def get_permission(id: UUID, service: PermissionService = Depends(deps.get_permission_service)) -> Any:
    try:
        return service.get_permission(id)
    except ServiceError as e:
        raise_http_error(e)


@router.put("/{id}", response_model=PermissionResponse)
def update_permission(
    *,
    id: UUID,
    permission_in: PermissionUpdate,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    try:
        return service.update_permission(id, permission_in)
    except ServiceError as e:
        raise_http_error(e)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_permission(id: UUID, service: PermissionService = Depends(deps.get_permission_service)) -> None:
    try:
        service.delete_permission(id)
    except ServiceError as e:
        raise_http_error(e)
