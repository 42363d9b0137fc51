import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cutroom.domain.errors import CutroomError

logger = logging.getLogger(__name__)

STATUS_BY_CODE: dict[str, int] = {
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
    "ACCOUNT_NOT_FOUND": status.HTTP_401_UNAUTHORIZED,
    "SESSION_REVOKED": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DELEGATE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "ALREADY_PUBLISHED": status.HTTP_409_CONFLICT,
    "PUBLISH_IN_PROGRESS": status.HTTP_409_CONFLICT,
    "NOT_DELEGATED": status.HTTP_409_CONFLICT,
    "DELEGATION_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "ASSET_UNAVAILABLE": status.HTTP_410_GONE,
    "QUOTA_EXCEEDED": status.HTTP_429_TOO_MANY_REQUESTS,
    "PUBLISH_FAILED": status.HTTP_502_BAD_GATEWAY,
    "UPSTREAM_TIMEOUT": status.HTTP_504_GATEWAY_TIMEOUT,
    "PUBLISH_OUTCOME_UNKNOWN": status.HTTP_502_BAD_GATEWAY,
    "IDENTITY_PROVIDER_ERROR": status.HTTP_502_BAD_GATEWAY,
    "PLATFORM_ERROR": status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: CutroomError) -> int:
    return STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def cutroom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, CutroomError)
    status_code = status_for(exc)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    elif exc.retryable and status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        headers = {"Retry-After": "60"}

    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CutroomError, cutroom_error_handler)
