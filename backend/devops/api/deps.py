"""
依赖注入：数据库会话、当前身份、服务对象与 RBAC 鉴权依赖

鉴权依赖统一流程:
1. 从 Bearer Token 解析身份，缺失或无效返回 401
2. 角色为 admin 直接放行
3. 交给 PermissionService 判断
4. 拒绝返回 403

Usage:
    @router.post("/", dependencies=[Depends(deps.require_permission("user:create"))])
"""
from typing import Callable, Generator, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from devops.core.config import settings
from devops.core.security import verify_token
from devops.db.session import SessionLocal
from devops.models.user import ROLE_ADMIN, ROLE_DEVELOP, ROLE_OPERATOR
from devops.schemas.auth import Principal
from devops.services.cluster_service import ClusterService
from devops.services.group_service import GroupService
from devops.services.k8s_yaml_service import K8sYAMLService
from devops.services.permission_cache import PermissionCache
from devops.services.permission_service import PermissionService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

WRITE_ACTIONS = {
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_permission_cache(request: Request) -> PermissionCache:
    return request.app.state.permission_cache


def get_permission_service(
    db: Session = Depends(get_db),
    cache: PermissionCache = Depends(get_permission_cache),
) -> PermissionService:
    return PermissionService(db, cache)


def get_group_service(
    db: Session = Depends(get_db),
    cache: PermissionCache = Depends(get_permission_cache),
) -> GroupService:
    return GroupService(db, cache)


def get_cluster_service(db: Session = Depends(get_db)) -> ClusterService:
    return ClusterService(db)


def get_k8s_yaml_service(
    db: Session = Depends(get_db),
    cluster_service: ClusterService = Depends(get_cluster_service),
) -> K8sYAMLService:
    return K8sYAMLService(db, cluster_service)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(detail: str = "permission denied") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def get_current_principal(token: Optional[str] = Depends(oauth2_scheme)) -> Principal:
    """
    从 Bearer Token 解析当前身份

    Raises:
        HTTPException: 401 未登录或 Token 无效
    """
    if not token:
        raise _unauthenticated("unauthenticated")

    claims = verify_token(token)
    if claims is None:
        raise _unauthenticated("Invalid or expired token")
    try:
        user_id = UUID(str(claims["sub"]))
    except ValueError:
        raise _unauthenticated("Invalid or expired token")

    return Principal(
        user_id=user_id,
        username=claims.get("username") or "",
        role_code=claims.get("role") or "",
    )


def is_admin(principal: Principal) -> bool:
    return principal.role_code == ROLE_ADMIN


def require_permission(code: str) -> Callable:
    """需要指定权限码"""
    def checker(
        principal: Principal = Depends(get_current_principal),
        service: PermissionService = Depends(get_permission_service),
    ) -> Principal:
        if is_admin(principal):
            return principal
        if not service.has_permission(principal.user_id, code):
            raise _forbidden()
        return principal
    return checker


def require_any_permission(*codes: str) -> Callable:
    """拥有任一权限码即可"""
    def checker(
        principal: Principal = Depends(get_current_principal),
        service: PermissionService = Depends(get_permission_service),
    ) -> Principal:
        if is_admin(principal):
            return principal
        if not service.has_any_permission(principal.user_id, *codes):
            raise _forbidden()
        return principal
    return checker


def require_resource_permission(resource_type: str, action: str) -> Callable:
    """资源级权限，资源 ID 取路径参数 id"""
    def checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        service: PermissionService = Depends(get_permission_service),
    ) -> Principal:
        if is_admin(principal):
            return principal
        resource_id = request.path_params.get("id")
        if not service.has_resource_permission(principal.user_id, resource_type, resource_id, action):
            raise _forbidden()
        return principal
    return checker


def require_permission_or_role(code: str, *roles: str) -> Callable:
    """角色匹配直接放行，否则检查权限码"""
    def checker(
        principal: Principal = Depends(get_current_principal),
        service: PermissionService = Depends(get_permission_service),
    ) -> Principal:
        if is_admin(principal) or principal.role_code in roles:
            return principal
        if not service.has_permission(principal.user_id, code):
            raise _forbidden()
        return principal
    return checker


def dynamic_permission_check(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    service: PermissionService = Depends(get_permission_service),
) -> Principal:
    """按路由模板 + 方法查找所需权限；未配置的路由放行"""
    if is_admin(principal):
        return principal
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    required = service.get_required_permission(path, request.method)
    if required is None:
        return principal
    if not service.has_permission(principal.user_id, required.code):
        raise _forbidden()
    return principal


def write_permission_check(resource_type: str) -> Callable:
    """按请求方法推导操作：POST=create、PUT/PATCH=update、DELETE=delete，其余为 view"""
    def checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        service: PermissionService = Depends(get_permission_service),
    ) -> Principal:
        if is_admin(principal):
            return principal
        action = WRITE_ACTIONS.get(request.method.upper(), "view")
        if not service.has_permission(principal.user_id, f"{resource_type}:{action}"):
            raise _forbidden()
        return principal
    return checker


def require_role(*roles: str) -> Callable:
    """需要指定角色之一（admin 总是放行）"""
    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if is_admin(principal) or principal.role_code in roles:
            return principal
        raise _forbidden()
    return checker


require_admin = require_role(ROLE_ADMIN)
require_operator = require_role(ROLE_ADMIN, ROLE_OPERATOR)
require_developer = require_role(ROLE_ADMIN, ROLE_OPERATOR, ROLE_DEVELOP)
