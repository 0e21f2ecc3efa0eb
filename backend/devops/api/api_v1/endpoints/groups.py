"""用户分组 API"""
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from devops.api import deps
from devops.core.errors import ServiceError, raise_http_error
from devops.schemas.auth import Principal
from devops.schemas.group import (
    GroupCreate,
    GroupListResponse,
    GroupMembersAdd,
    GroupNode,
    GroupResponse,
    GroupRolesSet,
    GroupUpdate,
)
from devops.services.group_service import GroupService

router = APIRouter(dependencies=[Depends(deps.write_permission_check("group"))])


@router.get("/", response_model=GroupListResponse)
def list_groups(
    keyword: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
    service: GroupService = Depends(deps.get_group_service),
) -> Any:
    items, total = service.list(keyword=keyword, skip=skip, limit=limit)
    return {"total": total, "items": items}


@router.get("/tree", response_model=List[GroupNode])
def get_group_tree(service: GroupService = Depends(deps.get_group_service)) -> Any:
    return service.tree()


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    *,
    group_in: GroupCreate,
    principal: Principal = Depends(deps.get_current_principal),
    service: GroupService = Depends(deps.get_group_service),
) -> Any:
    try:
        return service.create(group_in, created_by=principal.user_id)
    except ServiceError as e:
        raise_http_error(e)


@router.get("/{id}", response_model=GroupResponse)
def get_group(id: UUID, service: GroupService = Depends(deps.get_group_service)) -> Any:
    try:
        return service.get(id)
    except ServiceError as e:
        raise_http_error(e)


@router.put("/{id}", response_model=GroupResponse)
def update_group(
    *,
    id: UUID,
    group_in: GroupUpdate,
    service: GroupService = Depends(deps.get_group_service),
) -> Any:
    try:
        return service.update(id, group_in)
    except ServiceError as e:
        raise_http_error(e)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(id: UUID, service: GroupService = Depends(deps.get_group_service)) -> None:
    try:
        service.delete(id)
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{id}/members", response_model=GroupResponse)
def add_group_members(
    *,
    id: UUID,
    body: GroupMembersAdd,
    service: GroupService = Depends(deps.get_group_service),
) -> Any:
    try:
        return service.add_members(id, body.user_ids)
    except ServiceError as e:
        raise_http_error(e)


@router.delete("/{id}/members/{user_id}", response_model=GroupResponse)
def remove_group_member(
    id: UUID,
    user_id: UUID,
    service: GroupService = Depends(deps.get_group_service),
) -> Any:
    try:
        return service.remove_member(id, user_id)
    except ServiceError as e:
        raise_http_error(e)


@router.put("/{id}/roles", response_model=GroupResponse)
def set_group_roles(
    *,
    id: UUID,
    body: GroupRolesSet,
    service: GroupService = Depends(deps.get_group_service),
) -> Any:
    try:
        return service.set_roles(id, body.role_ids)
    except ServiceError as e:
        raise_http_error(e)
