from abc import ABC, abstractmethod

from siteconnect.integrations.core.types import (
    AuthContext,
    RemoteProject,
    RemoteUser,
    TenantSummary,
    TokenResponse,
)
from siteconnect.models.app_credential import AppCredentials


class ITenantProvider(ABC):
    @property
    @abstractmethod
    def provider_slug(self) -> str:
        pass

    @property
    @abstractmethod
    def default_scopes(self) -> list[str]:
        pass

    @abstractmethod
    def build_authorization_url(
        self,
        credentials: AppCredentials,
        redirect_uri: str,
        state: str,
        code_challenge: str | None = None,
    ) -> str:
        pass

    @abstractmethod
    async def exchange_code(
        self,
        credentials: AppCredentials,
        code: str,
        redirect_uri: str,
        code_verifier: str | None = None,
    ) -> TokenResponse:
        pass

    @abstractmethod
    async def refresh_access_token(
        self, credentials: AppCredentials, refresh_token: str
    ) -> TokenResponse:
        pass

    @abstractmethod
    async def revoke_token(self, credentials: AppCredentials, token: str) -> bool:
        pass

    @abstractmethod
    async def fetch_accessible_tenants(
        self, auth_context: AuthContext
    ) -> list[TenantSummary]:
        pass

    @abstractmethod
    async def fetch_current_user(
        self, auth_context: AuthContext, tenant_id: str
    ) -> RemoteUser:
        pass

    @abstractmethod
    async def fetch_projects(
        self, auth_context: AuthContext, tenant_id: str
    ) -> list[RemoteProject]:
        pass

    @abstractmethod
    async def count_projects(self, auth_context: AuthContext, tenant_id: str) -> int:
        pass
