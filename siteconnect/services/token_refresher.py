import logging
from datetime import datetime, timedelta, timezone

from siteconnect.core.exceptions import AppException
from siteconnect.core.settings import settings
from siteconnect.integrations.core.exceptions import (
    ConnectionNotFoundError,
    ReauthorizationRequiredError,
)
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.integrations.core.single_flight import SingleFlight
from siteconnect.models.connection_credential import ConnectionCredential
from siteconnect.services.app_credential_service import AppCredentialService
from siteconnect.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

# Shared across requests so concurrent handlers join the same refresh.
refresh_flights: SingleFlight[list[ConnectionCredential]] = SingleFlight()


class TokenRefresher:
    """
    Keeps access tokens fresh.

    Credentials issued by one authorization grant share a refresh token, so a
    refresh is performed once per grant family (``user_scope:grant_id``) and
    the result is written to every active record of that family.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        app_credential_service: AppCredentialService,
        provider: ITenantProvider,
        single_flight: SingleFlight[list[ConnectionCredential]] | None = None,
        margin_seconds: int | None = None,
    ):
        self._store = credential_store
        self._app_credentials = app_credential_service
        self._provider = provider
        self._flights = single_flight if single_flight is not None else refresh_flights
        self._margin = timedelta(
            seconds=(
                margin_seconds
                if margin_seconds is not None
                else settings.token_refresh_margin_seconds
            )
        )

    def needs_refresh(
        self, credential: ConnectionCredential, now: datetime | None = None
    ) -> bool:
        now = now or datetime.now(timezone.utc)
        return credential.token_expires_at <= now + self._margin

    async def ensure_fresh(self, credential: ConnectionCredential) -> ConnectionCredential:
        if not credential.is_active:
            raise ReauthorizationRequiredError(tenant_id=credential.tenant_id)
        if not self.needs_refresh(credential):
            return credential
        return await self._refresh_shared(credential, force=False)

    async def refresh(
        self, user_scope: str, tenant_id: str, force: bool = True
    ) -> ConnectionCredential:
        credential = await self._store.get(user_scope, tenant_id)
        if credential is None:
            raise ConnectionNotFoundError(tenant_id)
        if not credential.is_active:
            raise ReauthorizationRequiredError(tenant_id=tenant_id)
        if not force and not self.needs_refresh(credential):
            return credential
        logger.info("Refresh requested for site %s", tenant_id)
        return await self._refresh_shared(credential, force=force)

    async def refresh_expiring(self, window_seconds: int | None = None) -> int:
        """Refresh every active grant family with a token expiring inside the window."""
        window = (
            window_seconds
            if window_seconds is not None
            else settings.token_sweep_window_seconds
        )
        before = datetime.now(timezone.utc) + timedelta(seconds=window)
        expiring = await self._store.list_expiring(before)

        families: dict[str, ConnectionCredential] = {}
        for credential in expiring:
            families.setdefault(credential.refresh_key, credential)

        refreshed = 0
        for key, credential in families.items():
            try:
                current = await self._refresh_shared(
                    credential, force=False, due_before=before
                )
            except AppException as e:
                logger.warning("Sweep could not refresh %s: %s", key, e.message)
                continue
            if current.last_refreshed_at != credential.last_refreshed_at:
                refreshed += 1
        if families:
            logger.info("Sweep refreshed %d of %d grant(s)", refreshed, len(families))
        return refreshed

    async def _refresh_shared(
        self,
        credential: ConnectionCredential,
        force: bool,
        due_before: datetime | None = None,
    ) -> ConnectionCredential:
        if self._flights.is_in_flight(credential.refresh_key):
            logger.debug("Joining in-flight refresh for %s", credential.refresh_key)
        family = await self._flights.run(
            credential.refresh_key,
            lambda: self._refresh_family(
                credential.user_scope, credential.grant_id, force, due_before
            ),
        )
        for member in family:
            if member.tenant_id == credential.tenant_id:
                return member

        current = await self._store.get(credential.user_scope, credential.tenant_id)
        if current is None:
            raise ConnectionNotFoundError(credential.tenant_id)
        if not current.is_active:
            raise ReauthorizationRequiredError(tenant_id=credential.tenant_id)
        return current

    async def _refresh_family(
        self,
        user_scope: str,
        grant_id: str,
        force: bool,
        due_before: datetime | None = None,
    ) -> list[ConnectionCredential]:
        family = await self._store.list_by_grant(user_scope, grant_id)
        active = [c for c in family if c.is_active]
        if not active:
            raise ReauthorizationRequiredError(detail="connection is inactive")

        now = datetime.now(timezone.utc)
        due_before = due_before or now + self._margin
        # Another worker may have finished a refresh before this task started.
        if not force and not any(c.token_expires_at <= due_before for c in active):
            logger.debug("Grant %s already fresh", grant_id)
            return active

        source = next((c for c in active if c.refresh_token_encrypted), None)
        if source is None:
            reason = "no refresh token stored"
            await self._store.deactivate([c.id for c in family], reason)
            raise ReauthorizationRequiredError(detail=reason)

        refresh_token = self._store.decrypt_tokens(source).refresh_token
        app_credentials = await self._app_credentials.get()

        try:
            tokens = await self._provider.refresh_access_token(app_credentials, refresh_token)
        except ReauthorizationRequiredError as e:
            await self._store.deactivate([c.id for c in family], e.message)
            raise

        updated = await self._store.update_tokens([c.id for c in active], tokens, now)
        logger.info(
            "Refreshed grant %s for %d site(s), rotated=%s",
            grant_id,
            len(updated),
            tokens.refresh_token is not None,
        )
        return updated
