from fastapi import APIRouter

from devops.api.api_v1.endpoints import auth, users, roles, permissions, groups, clusters

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(clusters.router, prefix="/clusters", tags=["clusters"])
