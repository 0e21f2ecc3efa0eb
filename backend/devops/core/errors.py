"""Service-layer exceptions.

Services raise these; endpoints translate them into HTTP responses via
``raise_http_error``. Authorization denials never pass through here, the
RBAC gates in ``devops.api.deps`` answer 401/403 directly.
"""
from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError, LookupError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(ServiceError, ValueError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError, ValueError):
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamError(ServiceError):
    """Kubernetes API unreachable, decrypt failure and similar server-side faults."""

    status_code = status.HTTP_502_BAD_GATEWAY


def raise_http_error(exc: ServiceError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
