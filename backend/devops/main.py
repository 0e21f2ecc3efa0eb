"""FastAPI 应用工厂"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devops.api.api_v1.api import api_router
from devops.core.config import settings
from devops.services.permission_cache import PermissionCache


def create_app(permission_cache: Optional[PermissionCache] = None) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="DevOps console backend: RBAC and Kubernetes management",
        version="0.1.0",
    )

    # 进程内唯一的权限缓存，由依赖注入传给 PermissionService
    app.state.permission_cache = permission_cache or PermissionCache(ttl=settings.PERMISSION_CACHE_TTL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS] or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
