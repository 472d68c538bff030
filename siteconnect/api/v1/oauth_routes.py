import logging

from fastapi import APIRouter, Query

from siteconnect.core.dependencies import AuthorizationFlowServiceDep, UserScopeDep
from siteconnect.integrations.core.exceptions import (
    InvalidOrExpiredStateError,
    NotConfiguredError,
    TokenExchangeFailedError,
    UpstreamTimeoutError,
)
from siteconnect.schemas.common import (
    ApiResponse,
    create_error_response,
    create_success_response,
)
from siteconnect.schemas.connections import (
    AuthorizationStartResponse,
    ConnectionSummaryResponse,
    OAuthCallbackResponse,
    StartAuthorizationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth", tags=["oauth"])


@router.post("/start", response_model=ApiResponse[AuthorizationStartResponse])
async def start_authorization(
    user_scope: UserScopeDep,
    service: AuthorizationFlowServiceDep,
    request: StartAuthorizationRequest | None = None,
):
    redirect_uri = request.redirect_uri if request else None
    try:
        started = await service.start(user_scope, redirect_uri)
    except NotConfiguredError as e:
        logger.warning("Authorization requested before client credentials were set")
        return create_error_response(
            code=e.code,
            message=e.message,
            status_code=e.status_code,
        )
    return create_success_response(
        data=AuthorizationStartResponse(
            authorization_url=started.authorization_url,
            state=started.state,
            expires_at=started.expires_at,
        )
    )


@router.get(
    "/callback",
    response_model=ApiResponse[OAuthCallbackResponse],
    summary="OAuth Callback",
    description="Validates the state, exchanges the code and stores one connection per accessible site",
)
async def oauth_callback(
    service: AuthorizationFlowServiceDep,
    code: str = Query(..., description="Authorization code from the provider"),
    state: str = Query(..., description="State issued by /oauth/start"),
):
    logger.info("Received OAuth callback")
    try:
        credentials = await service.handle_callback(state, code)
    except (
        InvalidOrExpiredStateError,
        TokenExchangeFailedError,
        UpstreamTimeoutError,
    ) as e:
        return create_error_response(
            code=e.code,
            message=e.message,
            status_code=e.status_code,
        )
    return create_success_response(
        data=OAuthCallbackResponse(
            connections=[
                ConnectionSummaryResponse.from_credential(c) for c in credentials
            ]
        )
    )
