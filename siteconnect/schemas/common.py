import logging
from datetime import datetime, timezone
from typing import Generic, TypeVar
from uuid import uuid4

from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetaResponse(BaseModel):
    request_id: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    code: str
    message: str
    target: str | None = None


class ApiResponse(BaseModel, Generic[T]):
    meta: MetaResponse
    data: T | None = None
    error: ErrorResponse | None = None


def _meta() -> MetaResponse:
    return MetaResponse(request_id=str(uuid4()), timestamp=datetime.now(timezone.utc))


def create_success_response(data: T) -> ApiResponse[T]:
    return ApiResponse(meta=_meta(), data=data, error=None)


def create_error_response(
    code: str, message: str, target: str | None = None, status_code: int = 400
) -> JSONResponse:
    meta = _meta()
    response = ApiResponse(
        meta=meta,
        data=None,
        error=ErrorResponse(code=code, message=message, target=target),
    )
    logger.warning(
        "Error response [%s] status=%d code=%s target=%s message=%s",
        meta.request_id,
        status_code,
        code,
        target,
        message,
    )
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
    )
