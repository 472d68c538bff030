from functools import lru_cache
from typing import Annotated

import asyncpg
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from siteconnect.core.exceptions import AuthenticationException
from siteconnect.core.security import token_service
from siteconnect.core.settings import settings
from siteconnect.database import get_db_pool
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.integrations.providers.factory import get_provider
from siteconnect.repositories.app_credential_repository import AppCredentialRepository
from siteconnect.repositories.cached_resource_repository import (
    CachedResourceRepository,
)
from siteconnect.repositories.connection_credential_repository import (
    ConnectionCredentialRepository,
)
from siteconnect.services.app_credential_service import AppCredentialService
from siteconnect.services.authorization_flow_service import AuthorizationFlowService
from siteconnect.services.connection_health_service import ConnectionHealthService
from siteconnect.services.credential_store import CredentialStore
from siteconnect.services.flow_state_store import FlowStateStore, flow_state_store
from siteconnect.services.resource_discovery_service import ResourceDiscoveryService
from siteconnect.services.token_refresher import TokenRefresher
from siteconnect.utils.crypto import TokenCipher


http_bearer = HTTPBearer(auto_error=False)


@lru_cache
def get_token_cipher() -> TokenCipher:
    return TokenCipher(settings.encryption_key_list)


def get_tenant_provider() -> ITenantProvider:
    return get_provider()


def get_flow_state_store() -> FlowStateStore:
    return flow_state_store


def get_connection_credential_repository(
    pool: asyncpg.Pool = Depends(get_db_pool),
) -> ConnectionCredentialRepository:
    return ConnectionCredentialRepository(pool)


def get_cached_resource_repository(
    pool: asyncpg.Pool = Depends(get_db_pool),
) -> CachedResourceRepository:
    return CachedResourceRepository(pool)


def get_app_credential_repository(
    pool: asyncpg.Pool = Depends(get_db_pool),
) -> AppCredentialRepository:
    return AppCredentialRepository(pool)


def get_credential_store(
    credential_repository: ConnectionCredentialRepository = Depends(
        get_connection_credential_repository
    ),
    resource_repository: CachedResourceRepository = Depends(
        get_cached_resource_repository
    ),
    cipher: TokenCipher = Depends(get_token_cipher),
) -> CredentialStore:
    return CredentialStore(credential_repository, resource_repository, cipher)


def get_app_credential_service(
    repository: AppCredentialRepository = Depends(get_app_credential_repository),
    cipher: TokenCipher = Depends(get_token_cipher),
) -> AppCredentialService:
    return AppCredentialService(repository, cipher)


def get_token_refresher(
    credential_store: CredentialStore = Depends(get_credential_store),
    app_credential_service: AppCredentialService = Depends(get_app_credential_service),
    provider: ITenantProvider = Depends(get_tenant_provider),
) -> TokenRefresher:
    return TokenRefresher(credential_store, app_credential_service, provider)


def get_resource_discovery_service(
    credential_store: CredentialStore = Depends(get_credential_store),
    token_refresher: TokenRefresher = Depends(get_token_refresher),
    provider: ITenantProvider = Depends(get_tenant_provider),
) -> ResourceDiscoveryService:
    return ResourceDiscoveryService(credential_store, token_refresher, provider)


def get_authorization_flow_service(
    app_credential_service: AppCredentialService = Depends(get_app_credential_service),
    flow_store: FlowStateStore = Depends(get_flow_state_store),
    credential_store: CredentialStore = Depends(get_credential_store),
    resource_discovery: ResourceDiscoveryService = Depends(
        get_resource_discovery_service
    ),
    provider: ITenantProvider = Depends(get_tenant_provider),
) -> AuthorizationFlowService:
    return AuthorizationFlowService(
        app_credential_service=app_credential_service,
        flow_state_store=flow_store,
        credential_store=credential_store,
        resource_discovery=resource_discovery,
        provider=provider,
    )


def get_connection_health_service(
    credential_store: CredentialStore = Depends(get_credential_store),
    token_refresher: TokenRefresher = Depends(get_token_refresher),
    app_credential_service: AppCredentialService = Depends(get_app_credential_service),
    provider: ITenantProvider = Depends(get_tenant_provider),
) -> ConnectionHealthService:
    return ConnectionHealthService(
        credential_store, token_refresher, app_credential_service, provider
    )


async def get_current_user_scope(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer)],
) -> str:
    if credentials is None:
        raise AuthenticationException("NOT_AUTHENTICATED", "Not authenticated")

    user_scope = token_service.verify_user_scope(credentials.credentials)
    if user_scope is None:
        raise AuthenticationException(
            "INVALID_TOKEN", "Invalid or expired access token"
        )
    return user_scope


UserScopeDep = Annotated[str, Depends(get_current_user_scope)]
CredentialStoreDep = Annotated[CredentialStore, Depends(get_credential_store)]
AppCredentialServiceDep = Annotated[
    AppCredentialService, Depends(get_app_credential_service)
]
AuthorizationFlowServiceDep = Annotated[
    AuthorizationFlowService, Depends(get_authorization_flow_service)
]
TokenRefresherDep = Annotated[TokenRefresher, Depends(get_token_refresher)]
ResourceDiscoveryServiceDep = Annotated[
    ResourceDiscoveryService, Depends(get_resource_discovery_service)
]
ConnectionHealthServiceDep = Annotated[
    ConnectionHealthService, Depends(get_connection_health_service)
]
