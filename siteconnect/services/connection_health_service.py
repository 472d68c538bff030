import asyncio
import logging
from datetime import datetime, timezone

from siteconnect.core.exceptions import AppException
from siteconnect.integrations.core.exceptions import (
    ConnectionNotFoundError,
    NotConfiguredError,
    ReauthorizationRequiredError,
    UpstreamAuthError,
    UpstreamTimeoutError,
)
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.integrations.core.types import AuthContext
from siteconnect.models.connection_credential import ConnectionCredential
from siteconnect.models.connection_status import (
    ConnectedStatus,
    ConnectedUser,
    ConnectionStatus,
    DisconnectedStatus,
)
from siteconnect.services.app_credential_service import AppCredentialService
from siteconnect.services.credential_store import CredentialStore
from siteconnect.services.token_refresher import TokenRefresher

logger = logging.getLogger(__name__)


class ConnectionHealthService:
    def __init__(
        self,
        credential_store: CredentialStore,
        token_refresher: TokenRefresher,
        app_credential_service: AppCredentialService,
        provider: ITenantProvider,
    ):
        self._store = credential_store
        self._refresher = token_refresher
        self._app_credentials = app_credential_service
        self._provider = provider

    async def test_connection(self, user_scope: str, tenant_id: str) -> ConnectionStatus:
        credential = await self._store.get(user_scope, tenant_id)
        if credential is None or not credential.is_active:
            raise ConnectionNotFoundError(tenant_id)
        return await self._probe(credential)

    async def test_all(self, user_scope: str) -> list[ConnectionStatus]:
        """Probe every active connection of the user concurrently."""
        credentials = await self._store.list_for_user(user_scope, active_only=True)
        if not credentials:
            return []
        statuses = await asyncio.gather(*(self._probe(c) for c in credentials))
        connected = sum(1 for s in statuses if s.connected)
        logger.info("Tested %d connection(s), %d connected", len(statuses), connected)
        return list(statuses)

    async def revoke(self, user_scope: str, tenant_id: str) -> None:
        credential = await self._store.get(user_scope, tenant_id)
        if credential is None:
            raise ConnectionNotFoundError(tenant_id)

        siblings = [
            c
            for c in await self._store.list_by_grant(user_scope, credential.grant_id)
            if c.id != credential.id
        ]
        if siblings:
            logger.info(
                "Grant %s still used by %d site(s); skipping remote revocation",
                credential.grant_id,
                len(siblings),
            )
        else:
            await self._revoke_remote(credential)

        await self._store.delete(credential.id)
        logger.info("Connection to site %s removed", tenant_id)

    async def _probe(self, credential: ConnectionCredential) -> ConnectionStatus:
        checked_at = datetime.now(timezone.utc)
        try:
            fresh = await self._refresher.ensure_fresh(credential)
            auth_context = AuthContext(self._store.decrypt_tokens(fresh).access_token)
            user, project_count = await asyncio.gather(
                self._provider.fetch_current_user(auth_context, fresh.tenant_id),
                self._provider.count_projects(auth_context, fresh.tenant_id),
            )
        except ReauthorizationRequiredError as e:
            return self._disconnected(credential, "Reauthorization required", checked_at, e)
        except UpstreamAuthError as e:
            return self._disconnected(
                credential, f"Access denied by site (HTTP {e.upstream_status})", checked_at, e
            )
        except UpstreamTimeoutError as e:
            return self._disconnected(credential, "Site did not respond in time", checked_at, e)
        except NotConfiguredError as e:
            return self._disconnected(
                credential, "OAuth client credentials are not configured", checked_at, e
            )
        except AppException as e:
            return self._disconnected(credential, e.message, checked_at, e)
        except Exception as e:
            logger.exception("Unexpected error probing site %s", credential.tenant_id)
            return self._disconnected(
                credential, "Unexpected error while checking the site", checked_at, e
            )

        return ConnectedStatus(
            tenant_id=fresh.tenant_id,
            site_name=fresh.site_name,
            site_url=fresh.site_url,
            user=ConnectedUser(
                account_id=user.account_id,
                display_name=user.display_name,
                email_address=user.email_address,
                avatar_url=user.avatar_url,
            ),
            accessible_project_count=project_count,
            granted_scopes=fresh.granted_scopes,
            checked_at=checked_at,
        )

    def _disconnected(
        self,
        credential: ConnectionCredential,
        reason: str,
        checked_at: datetime,
        error: Exception,
    ) -> DisconnectedStatus:
        code = error.code if isinstance(error, AppException) else type(error).__name__
        logger.warning(
            "Site %s is not reachable: %s (%s)", credential.tenant_id, reason, code
        )
        return DisconnectedStatus(
            tenant_id=credential.tenant_id,
            site_name=credential.site_name,
            reason=reason,
            granted_scopes=credential.granted_scopes,
            checked_at=checked_at,
        )

    async def _revoke_remote(self, credential: ConnectionCredential) -> None:
        try:
            app_credentials = await self._app_credentials.get()
            tokens = self._store.decrypt_tokens(credential)
            token = tokens.refresh_token or tokens.access_token
            if not await self._provider.revoke_token(app_credentials, token):
                logger.warning("Remote revocation for site %s was refused", credential.tenant_id)
        except AppException as e:
            logger.warning(
                "Remote revocation for site %s failed, removing locally: %s",
                credential.tenant_id,
                e.message,
            )
