"""用户管理 API"""
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from devops import crud
from devops.api import deps
from devops.core.errors import ServiceError, raise_http_error
from devops.schemas.auth import Principal
from devops.schemas.permission import PermissionResponse
from devops.schemas.user import UserCreate, UserListResponse, UserResponse, UserUpdate
from devops.services.permission_cache import PermissionCache
from devops.services.permission_service import PermissionService

router = APIRouter(dependencies=[Depends(deps.write_permission_check("user"))])


def _get_user_or_404(db: Session, id: UUID):
    user = crud.user.get_with_role(db, id=id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/", response_model=UserListResponse)
def list_users(
    db: Session = Depends(deps.get_db),
    keyword: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
) -> Any:
    items, total = crud.user.get_multi_filtered(db, keyword=keyword, skip=skip, limit=limit)
    return {"total": total, "items": items}


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    *,
    db: Session = Depends(deps.get_db),
    user_in: UserCreate,
) -> Any:
    if crud.user.get_by_username(db, username=user_in.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already registered")
    if user_in.email and crud.user.get_by_email(db, email=user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    if user_in.role_id and not crud.role.get(db, id=user_in.role_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role not found")

    user = crud.user.create(db, obj_in=user_in)
    return crud.user.get_with_role(db, id=user.id)


@router.get("/{id}", response_model=UserResponse)
def get_user(id: UUID, db: Session = Depends(deps.get_db)) -> Any:
    return _get_user_or_404(db, id)


@router.put("/{id}", response_model=UserResponse)
def update_user(
    *,
    db: Session = Depends(deps.get_db),
    cache: PermissionCache = Depends(deps.get_permission_cache),
    id: UUID,
    user_in: UserUpdate,
) -> Any:
    user = _get_user_or_404(db, id)
    if user_in.email and user_in.email != user.email and crud.user.get_by_email(db, email=user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    if user_in.role_id and not crud.role.get(db, id=user_in.role_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role not found")

    crud.user.update(db, db_obj=user, obj_in=user_in)
    # 角色变化会改变有效权限
    cache.invalidate(id)
    return crud.user.get_with_role(db, id=id)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    *,
    db: Session = Depends(deps.get_db),
    cache: PermissionCache = Depends(deps.get_permission_cache),
    principal: Principal = Depends(deps.get_current_principal),
    id: UUID,
) -> None:
    if id == principal.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete yourself")
    user = _get_user_or_404(db, id)
    user.groups = []
    crud.user.remove(db, id=user.id)
    cache.invalidate(id)


@router.get("/{id}/permissions", response_model=List[PermissionResponse])
def get_user_permissions(
    id: UUID,
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    """用户的有效权限（直接角色 + 分组角色）"""
    try:
        return service.get_user_permissions(id)
    except ServiceError as e:
        raise_http_error(e)
