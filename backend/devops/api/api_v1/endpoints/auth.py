"""认证 API：登录与当前用户信息"""
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from devops import crud
from devops.api import deps
from devops.core.security import create_access_token
from devops.models.user import ROLE_ADMIN, User
from devops.schemas.auth import Principal, ProfileResponse, Token, UserLogin
from devops.services.permission_service import PermissionService

router = APIRouter()


def _login(db: Session, username: str, password: str) -> Token:
    user = crud.user.authenticate(db, username=username, password=password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not crud.user.is_active(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    crud.user.update_last_login(db, user=user)
    access_token = create_access_token(
        subject=user.id, username=user.username, role_code=user.role_code
    )
    return Token(access_token=access_token)


@router.post("/login", response_model=Token)
def login(
    *,
    db: Session = Depends(deps.get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Any:
    """OAuth2 compatible token login"""
    return _login(db, form_data.username, form_data.password)


@router.post("/login/json", response_model=Token)
def login_json(
    *,
    db: Session = Depends(deps.get_db),
    user_in: UserLogin,
) -> Any:
    """JSON 登录"""
    return _login(db, user_in.username, user_in.password)


@router.get("/me", response_model=ProfileResponse)
def get_profile(
    db: Session = Depends(deps.get_db),
    principal: Principal = Depends(deps.get_current_principal),
    service: PermissionService = Depends(deps.get_permission_service),
) -> Any:
    """当前用户信息及权限码；管理员返回全部启用的权限码"""
    user: User = crud.user.get_with_role(db, id=principal.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if user.role_code == ROLE_ADMIN:
        codes = [p.code for p in crud.permission.get_enabled(db)]
    else:
        codes = service.get_user_permission_codes(user.id)

    return ProfileResponse(
        id=user.id,
        username=user.username,
        real_name=user.real_name,
        email=user.email,
        role_code=user.role_code,
        permissions=codes,
    )
