import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from siteconnect.core.settings import settings
from siteconnect.dtos.credential_dtos import (
    CreateCachedResourceDTO,
    DeactivateCredentialDTO,
    UpdateTokensDTO,
    UpsertConnectionCredentialDTO,
)
from siteconnect.integrations.core.types import (
    RemoteProject,
    TenantSummary,
    TokenPair,
    TokenResponse,
)
from siteconnect.models.cached_resource import CachedResource
from siteconnect.models.connection_credential import ConnectionCredential
from siteconnect.repositories.cached_resource_repository import (
    CachedResourceRepository,
)
from siteconnect.repositories.connection_credential_repository import (
    ConnectionCredentialRepository,
)
from siteconnect.utils.crypto import TokenCipher

logger = logging.getLogger(__name__)


def compute_expiry(
    tokens: TokenResponse, now: datetime, default_lifetime: int | None = None
) -> datetime:
    lifetime = tokens.expires_in
    if lifetime is None:
        lifetime = (
            default_lifetime
            if default_lifetime is not None
            else settings.default_token_lifetime_seconds
        )
    return now + timedelta(seconds=lifetime)


class CredentialStore:
    """
    Encrypted storage for per-site connection credentials.

    One record exists per (user scope, tenant). Token columns are written only
    as ciphertext and are decrypted on demand into a transient ``TokenPair``.
    """

    def __init__(
        self,
        credential_repository: ConnectionCredentialRepository,
        resource_repository: CachedResourceRepository,
        cipher: TokenCipher,
    ):
        self._credential_repo = credential_repository
        self._resource_repo = resource_repository
        self._cipher = cipher

    async def upsert(
        self,
        user_scope: str,
        tenant: TenantSummary,
        tokens: TokenResponse,
        grant_id: str,
        now: datetime | None = None,
    ) -> ConnectionCredential:
        now = now or datetime.now(timezone.utc)
        dto = UpsertConnectionCredentialDTO(
            user_scope=user_scope,
            tenant_id=tenant.tenant_id,
            grant_id=grant_id,
            site_name=tenant.name,
            site_url=tenant.url,
            avatar_url=tenant.avatar_url,
            access_token_encrypted=self._cipher.encrypt(tokens.access_token),
            refresh_token_encrypted=(
                self._cipher.encrypt(tokens.refresh_token)
                if tokens.refresh_token
                else None
            ),
            token_expires_at=compute_expiry(tokens, now),
            granted_scopes=tokens.scopes or tenant.scopes,
        )
        credential = await self._credential_repo.upsert(dto)
        logger.info(
            "Stored credential for site %s (%s)", tenant.tenant_id, tenant.name
        )
        return credential

    async def get(self, user_scope: str, tenant_id: str) -> ConnectionCredential | None:
        return await self._credential_repo.find_by_scope_and_tenant(user_scope, tenant_id)

    async def list_for_user(
        self, user_scope: str, active_only: bool = False
    ) -> list[ConnectionCredential]:
        return await self._credential_repo.find_by_user_scope(user_scope, active_only)

    async def list_expiring(self, before: datetime) -> list[ConnectionCredential]:
        return await self._credential_repo.find_expiring(before)

    async def list_by_grant(
        self, user_scope: str, grant_id: str
    ) -> list[ConnectionCredential]:
        return await self._credential_repo.find_by_grant(user_scope, grant_id)

    async def update_tokens(
        self,
        credential_ids: list[UUID],
        tokens: TokenResponse,
        now: datetime | None = None,
    ) -> list[ConnectionCredential]:
        now = now or datetime.now(timezone.utc)
        dto = UpdateTokensDTO(
            access_token_encrypted=self._cipher.encrypt(tokens.access_token),
            refresh_token_encrypted=(
                self._cipher.encrypt(tokens.refresh_token)
                if tokens.refresh_token
                else None
            ),
            token_expires_at=compute_expiry(tokens, now),
            last_refreshed_at=now,
        )
        updated = await self._credential_repo.update_tokens(credential_ids, dto)
        logger.debug("Updated tokens on %d credential(s)", len(updated))
        return updated

    async def deactivate(self, credential_ids: list[UUID], reason: str) -> int:
        if not credential_ids:
            return 0
        count = await self._credential_repo.deactivate(
            DeactivateCredentialDTO(credential_ids=credential_ids, reason=reason)
        )
        logger.warning("Deactivated %d credential(s): %s", count, reason)
        return count

    async def delete(self, credential_id: UUID) -> bool:
        deleted = await self._credential_repo.delete(credential_id)
        if deleted:
            logger.info("Deleted credential %s", credential_id)
        return deleted

    async def replace_resources(
        self, credential_id: UUID, projects: list[RemoteProject]
    ) -> list[CachedResource]:
        resources = [
            CreateCachedResourceDTO(
                external_id=p.external_id,
                resource_key=p.key,
                name=p.name,
                resource_type=p.project_type,
            )
            for p in projects
        ]
        return await self._resource_repo.replace_for_credential(credential_id, resources)

    async def list_resources(self, credential_id: UUID) -> list[CachedResource]:
        return await self._resource_repo.find_by_credential(credential_id)

    def decrypt_tokens(self, credential: ConnectionCredential) -> TokenPair:
        access_token = self._cipher.decrypt(
            credential.access_token_encrypted, field="access token"
        )
        refresh_token = None
        if credential.refresh_token_encrypted:
            refresh_token = self._cipher.decrypt(
                credential.refresh_token_encrypted, field="refresh token"
            )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)
