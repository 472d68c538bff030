from fastapi import APIRouter

from siteconnect.api.v1.connection_routes import router as connection_router
from siteconnect.api.v1.credential_routes import router as credential_router
from siteconnect.api.v1.oauth_routes import router as oauth_router

api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(credential_router)
api_v1_router.include_router(oauth_router)
api_v1_router.include_router(connection_router)
