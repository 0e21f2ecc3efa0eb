"""角色 API：内置角色只读，可调整角色的权限"""
from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from devops import crud
from devops.api import deps
from devops.core.errors import ServiceError, raise_http_error
from devops.schemas.permission import PermissionResponse
from devops.schemas.user import RolePermissionsUpdate, RoleResponse
from devops.services.permission_service import PermissionService

router = APIRouter(dependencies=[Depends(deps.write_permission_check("role"))])


@router.get("/", response_model=List[RoleResponse])
def list_roles(db: Session = Depends(deps.get_db)) -> Any:
    return crud.role.get_all(db)


@router.get("/{id}", response_model=RoleResponse)
def get_role(id: UUID, db: Session = Depends(deps.get_db)) -> Any:
    role = crud.role.get(db, id=id)
    if not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return role


@router.get("/{id}/permissions", response_model=List[PermissionResponse])
def get_role_permissions(
    id: UUID,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    try:
        return service.get_role_permissions(id)
    except ServiceError as e:
        raise_http_error(e)


@router.put("/{id}/permissions", response_model=List[PermissionResponse])
def set_role_permissions(
    *,
    id: UUID,
    body: RolePermissionsUpdate,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    """整体替换角色的权限，并清空权限缓存"""
    try:
        role = service.set_role_permissions(id, body.permission_ids)
    except ServiceError as e:
        raise_http_error(e)
    return role.permissions
