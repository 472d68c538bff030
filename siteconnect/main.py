import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from siteconnect.api.v1 import api_v1_router
from siteconnect.core.exceptions import AppException
from siteconnect.core.lifespan import lifespan
from siteconnect.core.settings import settings
from siteconnect.database import db_connection
from siteconnect.schemas.common import create_error_response
from siteconnect.services.flow_state_store import flow_state_store

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        "AppException on %s %s: code=%s message=%s",
        request.method,
        request.url.path,
        exc.code,
        exc.message,
    )
    return create_error_response(
        code=exc.code,
        message=exc.message,
        target=getattr(exc, "field", None),
        status_code=exc.status_code,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return create_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=422,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return create_error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=500,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.get("/health")
async def health_check() -> dict[str, str | int]:
    database = "connected" if await db_connection.is_connected() else "disconnected"
    return {
        "status": "healthy",
        "database": database,
        "pending_oauth_flows": await flow_state_store.pending_count(),
    }


if __name__ == "__main__":
    uvicorn.run(
        "siteconnect.main:app",
        host="localhost",
        port=8000,
        reload=settings.debug,
    )
