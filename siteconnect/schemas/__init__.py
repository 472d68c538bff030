from siteconnect.schemas.common import (
    ApiResponse,
    ErrorResponse,
    MetaResponse,
    create_error_response,
    create_success_response,
)
from siteconnect.schemas.connections import (
    AuthorizationStartResponse,
    CachedResourceResponse,
    ConnectionSummaryResponse,
    OAuthCallbackResponse,
    StartAuthorizationRequest,
)
from siteconnect.schemas.credentials import (
    AppCredentialStatusResponse,
    SetAppCredentialsRequest,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "MetaResponse",
    "create_error_response",
    "create_success_response",
    "AuthorizationStartResponse",
    "CachedResourceResponse",
    "ConnectionSummaryResponse",
    "OAuthCallbackResponse",
    "StartAuthorizationRequest",
    "AppCredentialStatusResponse",
    "SetAppCredentialsRequest",
]
