import logging

from fastapi import APIRouter

from siteconnect.core.dependencies import AppCredentialServiceDep, UserScopeDep
from siteconnect.core.exceptions import ValidationException
from siteconnect.schemas.common import (
    ApiResponse,
    create_error_response,
    create_success_response,
)
from siteconnect.schemas.credentials import (
    AppCredentialStatusResponse,
    SetAppCredentialsRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/credentials", tags=["credentials"])


@router.get("/status", response_model=ApiResponse[AppCredentialStatusResponse])
async def get_credential_status(
    user_scope: UserScopeDep,
    service: AppCredentialServiceDep,
):
    status = await service.status()
    return create_success_response(data=AppCredentialStatusResponse(**status))


@router.put("", response_model=ApiResponse[AppCredentialStatusResponse])
async def set_app_credentials(
    request: SetAppCredentialsRequest,
    user_scope: UserScopeDep,
    service: AppCredentialServiceDep,
):
    logger.info("Updating OAuth client credentials")
    try:
        await service.set(request.client_id, request.client_secret)
    except ValidationException as e:
        return create_error_response(
            code=e.code,
            message=e.message,
            target=e.field,
            status_code=e.status_code,
        )
    return create_success_response(data=AppCredentialStatusResponse(configured=True))


@router.delete("", response_model=ApiResponse[AppCredentialStatusResponse])
async def clear_app_credentials(
    user_scope: UserScopeDep,
    service: AppCredentialServiceDep,
):
    logger.info("Clearing OAuth client credentials")
    await service.clear()
    return create_success_response(data=AppCredentialStatusResponse(configured=False))
