import logging
from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import urlencode

from siteconnect.core.settings import settings
from siteconnect.integrations.core.client import ApiClient
from siteconnect.integrations.core.exceptions import (
    ApiRequestError,
    ReauthorizationRequiredError,
    TokenExchangeFailedError,
    UpstreamAuthError,
)
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.integrations.core.types import (
    ApiResponse,
    AuthContext,
    HttpMethod,
    RemoteProject,
    RemoteUser,
    RequestDefinition,
    TenantSummary,
    TokenResponse,
)
from siteconnect.integrations.providers.atlassian.adapters import (
    adapt_accessible_resources,
    adapt_projects,
    adapt_token_response,
    adapt_user,
    describe_token_error,
)
from siteconnect.integrations.providers.atlassian.constants import (
    ATLASSIAN_ACCESSIBLE_RESOURCES_PATH,
    ATLASSIAN_AUTHORIZE_PATH,
    ATLASSIAN_MAX_PROJECT_PAGES,
    ATLASSIAN_MYSELF_PATH,
    ATLASSIAN_PROJECT_PAGE_SIZE,
    ATLASSIAN_PROJECT_SEARCH_PATH,
    ATLASSIAN_PROVIDER_SLUG,
    ATLASSIAN_REVOKE_PATH,
    ATLASSIAN_TOKEN_PATH,
    INVALID_GRANT_ERRORS,
)
from siteconnect.models.app_credential import AppCredentials

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AtlassianProvider(ITenantProvider):
    def __init__(
        self,
        auth_base_url: str | None = None,
        api_base_url: str | None = None,
        audience: str | None = None,
        scopes: list[str] | None = None,
        timeout: float | None = None,
    ):
        self._auth_base_url = (auth_base_url or settings.atlassian_auth_base_url).rstrip("/")
        self._api_base_url = (api_base_url or settings.atlassian_api_base_url).rstrip("/")
        self._audience = audience or settings.atlassian_audience
        self._scopes = scopes or settings.atlassian_scope_list
        self._timeout = timeout or settings.upstream_timeout_seconds

    @property
    def provider_slug(self) -> str:
        return ATLASSIAN_PROVIDER_SLUG

    @property
    def default_scopes(self) -> list[str]:
        return list(self._scopes)

    def build_authorization_url(
        self,
        credentials: AppCredentials,
        redirect_uri: str,
        state: str,
        code_challenge: str | None = None,
    ) -> str:
        params = {
            "audience": self._audience,
            "client_id": credentials.client_id,
            "scope": " ".join(self._scopes),
            "redirect_uri": redirect_uri,
            "state": state,
            "response_type": "code",
            "prompt": "consent",
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"
        return f"{self._auth_base_url}{ATLASSIAN_AUTHORIZE_PATH}?{urlencode(params)}"

    async def exchange_code(
        self,
        credentials: AppCredentials,
        code: str,
        redirect_uri: str,
        code_verifier: str | None = None,
    ) -> TokenResponse:
        form = {
            "grant_type": "authorization_code",
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
        }
        if code_verifier:
            form["code_verifier"] = code_verifier

        response = await self._post_token_endpoint(form, "token.exchange")
        if not response.is_success:
            _, diagnostic = describe_token_error(
                response.status_code, response.data, response.text
            )
            logger.warning("Code exchange rejected: %s", diagnostic)
            raise TokenExchangeFailedError(diagnostic)
        if not isinstance(response.data, dict) or not response.data.get("access_token"):
            raise TokenExchangeFailedError("token response did not include an access token")
        try:
            return self._adapt(
                adapt_token_response, response.data, "token.exchange", response.status_code
            )
        except ApiRequestError as e:
            raise TokenExchangeFailedError(e.message) from e

    async def refresh_access_token(
        self, credentials: AppCredentials, refresh_token: str
    ) -> TokenResponse:
        form = {
            "grant_type": "refresh_token",
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "refresh_token": refresh_token,
        }
        response = await self._post_token_endpoint(form, "token.refresh")
        if not response.is_success:
            error, diagnostic = describe_token_error(
                response.status_code, response.data, response.text
            )
            logger.warning("Token refresh rejected: %s", diagnostic)
            if error in INVALID_GRANT_ERRORS or response.status_code in (401, 403):
                raise ReauthorizationRequiredError(detail=diagnostic)
            raise ApiRequestError(
                response.status_code, f"Token refresh failed: {diagnostic}"
            )
        if not isinstance(response.data, dict) or not response.data.get("access_token"):
            raise ApiRequestError(
                response.status_code, "Token refresh response did not include an access token"
            )
        return self._adapt(
            adapt_token_response, response.data, "token.refresh", response.status_code
        )

    async def revoke_token(self, credentials: AppCredentials, token: str) -> bool:
        form = {
            "token": token,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        request = RequestDefinition(
            method=HttpMethod.POST,
            url=f"{self._auth_base_url}{ATLASSIAN_REVOKE_PATH}",
            operation="token.revoke",
            form=form,
        )
        async with ApiClient(timeout=self._timeout) as client:
            response = await client.execute(request)
        if not response.is_success:
            logger.warning("Token revocation returned HTTP %d", response.status_code)
        return response.is_success

    async def fetch_accessible_tenants(
        self, auth_context: AuthContext
    ) -> list[TenantSummary]:
        request = RequestDefinition(
            method=HttpMethod.GET,
            url=f"{self._api_base_url}{ATLASSIAN_ACCESSIBLE_RESOURCES_PATH}",
            operation="accessible-resources",
        )
        async with ApiClient(timeout=self._timeout) as client:
            response = await client.execute(request, auth_context)
        data = self._expect_success(response, request.operation)
        if not isinstance(data, list):
            raise ApiRequestError(
                response.status_code, "Unexpected accessible-resources payload"
            )
        tenants = self._adapt(
            adapt_accessible_resources, data, request.operation, response.status_code
        )
        logger.debug("Token can reach %d site(s)", len(tenants))
        return tenants

    async def fetch_current_user(
        self, auth_context: AuthContext, tenant_id: str
    ) -> RemoteUser:
        request = RequestDefinition(
            method=HttpMethod.GET,
            url=self._site_url(ATLASSIAN_MYSELF_PATH, tenant_id),
            operation="myself",
        )
        async with ApiClient(timeout=self._timeout) as client:
            response = await client.execute(request, auth_context)
        data = self._expect_success(response, request.operation)
        if not isinstance(data, dict):
            raise ApiRequestError(response.status_code, "Unexpected myself payload")
        return self._adapt(adapt_user, data, request.operation, response.status_code)

    async def fetch_projects(
        self, auth_context: AuthContext, tenant_id: str
    ) -> list[RemoteProject]:
        projects: list[RemoteProject] = []
        start_at = 0
        async with ApiClient(timeout=self._timeout) as client:
            for _ in range(ATLASSIAN_MAX_PROJECT_PAGES):
                page = await self._fetch_project_page(
                    client, auth_context, tenant_id, start_at, ATLASSIAN_PROJECT_PAGE_SIZE
                )
                values = page.data.get("values") or []
                projects.extend(
                    self._adapt(adapt_projects, values, "project.search", page.status_code)
                )
                if page.data.get("isLast", True) or not values:
                    break
                start_at += len(values)
            else:
                logger.warning(
                    "Stopped paging projects for site %s after %d pages",
                    tenant_id,
                    ATLASSIAN_MAX_PROJECT_PAGES,
                )
        logger.debug("Fetched %d project(s) for site %s", len(projects), tenant_id)
        return projects

    async def count_projects(self, auth_context: AuthContext, tenant_id: str) -> int:
        async with ApiClient(timeout=self._timeout) as client:
            page = await self._fetch_project_page(client, auth_context, tenant_id, 0, 1)
        total = page.data.get("total")
        if total is None:
            return len(page.data.get("values") or [])
        return self._adapt(int, total, "project.search", page.status_code)

    async def _fetch_project_page(
        self,
        client: ApiClient,
        auth_context: AuthContext,
        tenant_id: str,
        start_at: int,
        max_results: int,
    ) -> ApiResponse:
        request = RequestDefinition(
            method=HttpMethod.GET,
            url=self._site_url(ATLASSIAN_PROJECT_SEARCH_PATH, tenant_id),
            operation="project.search",
            params={"startAt": start_at, "maxResults": max_results},
        )
        response = await client.execute(request, auth_context)
        data = self._expect_success(response, request.operation)
        if not isinstance(data, dict):
            raise ApiRequestError(response.status_code, "Unexpected project search payload")
        return response

    async def _post_token_endpoint(
        self, form: dict[str, str], operation: str
    ) -> ApiResponse:
        request = RequestDefinition(
            method=HttpMethod.POST,
            url=f"{self._auth_base_url}{ATLASSIAN_TOKEN_PATH}",
            operation=operation,
            form=form,
        )
        async with ApiClient(timeout=self._timeout) as client:
            return await client.execute(request)

    def _adapt(
        self,
        adapter: Callable[[Any], T],
        data: Any,
        operation: str,
        status_code: int,
    ) -> T:
        try:
            return adapter(data)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Unexpected %s payload: %s", operation, e)
            raise ApiRequestError(
                status_code, f"Unexpected {operation} payload: {e}"
            ) from e

    def _site_url(self, path_template: str, tenant_id: str) -> str:
        return f"{self._api_base_url}{path_template.format(tenant_id=tenant_id)}"

    def _expect_success(self, response: ApiResponse, operation: str) -> object:
        if response.is_unauthorized or response.is_forbidden:
            raise UpstreamAuthError(
                response.status_code,
                f"{operation} rejected the access token (HTTP {response.status_code})",
            )
        if not response.is_success:
            raise ApiRequestError(
                response.status_code,
                f"{operation} failed: HTTP {response.status_code}: {response.text[:200]}",
            )
        return response.data


atlassian_provider = AtlassianProvider()
