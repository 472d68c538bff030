import logging

from siteconnect.core.exceptions import AppException
from siteconnect.integrations.core.exceptions import (
    ConnectionNotFoundError,
    ReauthorizationRequiredError,
)
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.integrations.core.types import AuthContext, TenantSummary
from siteconnect.models.cached_resource import CachedResource
from siteconnect.models.connection_credential import ConnectionCredential
from siteconnect.models.connection_status import AccessibleSite
from siteconnect.services.credential_store import CredentialStore
from siteconnect.services.token_refresher import TokenRefresher

logger = logging.getLogger(__name__)


class ResourceDiscoveryService:
    def __init__(
        self,
        credential_store: CredentialStore,
        token_refresher: TokenRefresher,
        provider: ITenantProvider,
    ):
        self._store = credential_store
        self._refresher = token_refresher
        self._provider = provider

    async def list_accessible_tenants(self, access_token: str) -> list[TenantSummary]:
        return await self._provider.fetch_accessible_tenants(AuthContext(access_token))

    async def list_accessible_sites(self, user_scope: str) -> list[AccessibleSite]:
        """
        Sites reachable by any of the user's grants, flagged with whether a
        connection is already stored for them.
        """
        credentials = await self._store.list_for_user(user_scope, active_only=True)
        connected_ids = {c.tenant_id for c in credentials}

        one_per_grant: dict[str, ConnectionCredential] = {}
        for credential in credentials:
            one_per_grant.setdefault(credential.refresh_key, credential)

        sites: dict[str, AccessibleSite] = {}
        for credential in one_per_grant.values():
            try:
                fresh = await self._refresher.ensure_fresh(credential)
                access_token = self._store.decrypt_tokens(fresh).access_token
                tenants = await self.list_accessible_tenants(access_token)
            except ReauthorizationRequiredError:
                logger.warning(
                    "Skipping grant %s: reauthorization required", credential.grant_id
                )
                continue
            except AppException as e:
                logger.warning(
                    "Skipping grant %s: %s (%s)", credential.grant_id, e.message, e.code
                )
                continue
            for tenant in tenants:
                if tenant.tenant_id in sites:
                    continue
                sites[tenant.tenant_id] = AccessibleSite(
                    tenant_id=tenant.tenant_id,
                    name=tenant.name,
                    url=tenant.url,
                    scopes=tenant.scopes,
                    avatar_url=tenant.avatar_url,
                    connected=tenant.tenant_id in connected_ids,
                )

        logger.info("User can reach %d site(s)", len(sites))
        return list(sites.values())

    async def cache_resources(self, credential: ConnectionCredential) -> list[CachedResource]:
        """Replace the cached project list for a credential.

        Provider failures propagate and leave both the previous cache and the
        credential as they were.
        """
        fresh = await self._refresher.ensure_fresh(credential)
        access_token = self._store.decrypt_tokens(fresh).access_token
        projects = await self._provider.fetch_projects(
            AuthContext(access_token), fresh.tenant_id
        )
        resources = await self._store.replace_resources(fresh.id, projects)
        logger.info("Cached %d project(s) for site %s", len(resources), fresh.tenant_id)
        return resources

    async def refresh_cached_resources(
        self, user_scope: str, tenant_id: str
    ) -> list[CachedResource]:
        credential = await self._get_active_credential(user_scope, tenant_id)
        return await self.cache_resources(credential)

    async def get_cached_resources(
        self, user_scope: str, tenant_id: str
    ) -> list[CachedResource]:
        credential = await self._store.get(user_scope, tenant_id)
        if credential is None:
            raise ConnectionNotFoundError(tenant_id)
        return await self._store.list_resources(credential.id)

    async def _get_active_credential(
        self, user_scope: str, tenant_id: str
    ) -> ConnectionCredential:
        credential = await self._store.get(user_scope, tenant_id)
        if credential is None or not credential.is_active:
            raise ConnectionNotFoundError(tenant_id)
        return credential
