import logging

from fastapi import APIRouter

from siteconnect.core.dependencies import (
    ConnectionHealthServiceDep,
    CredentialStoreDep,
    ResourceDiscoveryServiceDep,
    TokenRefresherDep,
    UserScopeDep,
)
from siteconnect.integrations.core.exceptions import (
    ConnectionNotFoundError,
    ReauthorizationRequiredError,
)
from siteconnect.models.connection_status import AccessibleSite, ConnectionStatus
from siteconnect.schemas.common import (
    ApiResponse,
    create_error_response,
    create_success_response,
)
from siteconnect.schemas.connections import (
    CachedResourceResponse,
    ConnectionSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["connections"])


@router.get(
    "/connections", response_model=ApiResponse[list[ConnectionSummaryResponse]]
)
async def list_connections(user_scope: UserScopeDep, store: CredentialStoreDep):
    credentials = await store.list_for_user(user_scope)
    return create_success_response(
        data=[ConnectionSummaryResponse.from_credential(c) for c in credentials]
    )


@router.get("/sites/accessible", response_model=ApiResponse[list[AccessibleSite]])
async def list_accessible_sites(
    user_scope: UserScopeDep,
    discovery: ResourceDiscoveryServiceDep,
):
    sites = await discovery.list_accessible_sites(user_scope)
    return create_success_response(data=sites)


@router.post("/connections/test", response_model=ApiResponse[list[ConnectionStatus]])
async def test_all_connections(
    user_scope: UserScopeDep,
    health: ConnectionHealthServiceDep,
):
    statuses = await health.test_all(user_scope)
    return create_success_response(data=statuses)


@router.post(
    "/connections/{tenant_id}/test", response_model=ApiResponse[ConnectionStatus]
)
async def test_connection(
    tenant_id: str,
    user_scope: UserScopeDep,
    health: ConnectionHealthServiceDep,
):
    logger.info("Testing connection to site %s", tenant_id)
    try:
        status = await health.test_connection(user_scope, tenant_id)
    except ConnectionNotFoundError as e:
        return create_error_response(
            code=e.code,
            message=e.message,
            target="tenant_id",
            status_code=e.status_code,
        )
    return create_success_response(data=status)


@router.post(
    "/connections/{tenant_id}/refresh",
    response_model=ApiResponse[ConnectionSummaryResponse],
)
async def refresh_connection(
    tenant_id: str,
    user_scope: UserScopeDep,
    refresher: TokenRefresherDep,
):
    try:
        credential = await refresher.refresh(user_scope, tenant_id, force=True)
    except (ConnectionNotFoundError, ReauthorizationRequiredError) as e:
        return create_error_response(
            code=e.code,
            message=e.message,
            target="tenant_id",
            status_code=e.status_code,
        )
    return create_success_response(
        data=ConnectionSummaryResponse.from_credential(credential)
    )


@router.delete("/connections/{tenant_id}", response_model=ApiResponse[dict])
async def revoke_connection(
    tenant_id: str,
    user_scope: UserScopeDep,
    health: ConnectionHealthServiceDep,
):
    logger.info("Revoking connection to site %s", tenant_id)
    try:
        await health.revoke(user_scope, tenant_id)
    except ConnectionNotFoundError as e:
        return create_error_response(
            code=e.code,
            message=e.message,
            target="tenant_id",
            status_code=e.status_code,
        )
    return create_success_response(data={"tenant_id": tenant_id, "revoked": True})


@router.get(
    "/connections/{tenant_id}/resources",
    response_model=ApiResponse[list[CachedResourceResponse]],
)
async def list_cached_resources(
    tenant_id: str,
    user_scope: UserScopeDep,
    discovery: ResourceDiscoveryServiceDep,
):
    resources = await discovery.get_cached_resources(user_scope, tenant_id)
    return create_success_response(
        data=[CachedResourceResponse.from_resource(r) for r in resources]
    )


@router.post(
    "/connections/{tenant_id}/resources/refresh",
    response_model=ApiResponse[list[CachedResourceResponse]],
)
async def refresh_cached_resources(
    tenant_id: str,
    user_scope: UserScopeDep,
    discovery: ResourceDiscoveryServiceDep,
):
    logger.info("Refreshing cached projects for site %s", tenant_id)
    resources = await discovery.refresh_cached_resources(user_scope, tenant_id)
    return create_success_response(
        data=[CachedResourceResponse.from_resource(r) for r in resources]
    )
