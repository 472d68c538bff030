import logging
import uuid
from urllib.parse import urlparse

from siteconnect.constants.enums import FlowStage
from siteconnect.core.exceptions import AppException, ValidationException
from siteconnect.core.settings import settings
from siteconnect.integrations.core.exceptions import (
    ApiRequestError,
    TokenExchangeFailedError,
    UpstreamAuthError,
)
from siteconnect.integrations.core.interfaces import ITenantProvider
from siteconnect.models.connection_credential import ConnectionCredential
from siteconnect.models.oauth_flow_state import AuthorizationStart
from siteconnect.services.app_credential_service import AppCredentialService
from siteconnect.services.credential_store import CredentialStore
from siteconnect.services.flow_state_store import FlowStateStore
from siteconnect.services.resource_discovery_service import ResourceDiscoveryService
from siteconnect.utils.crypto import generate_oauth_state, generate_pkce_pair

logger = logging.getLogger(__name__)


class AuthorizationFlowService:
    def __init__(
        self,
        app_credential_service: AppCredentialService,
        flow_state_store: FlowStateStore,
        credential_store: CredentialStore,
        resource_discovery: ResourceDiscoveryService,
        provider: ITenantProvider,
        use_pkce: bool | None = None,
        allowed_redirect_uris: list[str] | None = None,
    ):
        self._app_credentials = app_credential_service
        self._flows = flow_state_store
        self._store = credential_store
        self._discovery = resource_discovery
        self._provider = provider
        self._use_pkce = settings.oauth_use_pkce if use_pkce is None else use_pkce
        self._allowed_redirect_uris = (
            settings.allowed_redirect_uri_list
            if allowed_redirect_uris is None
            else allowed_redirect_uris
        )

    async def start(
        self, user_scope: str, redirect_uri: str | None = None
    ) -> AuthorizationStart:
        redirect_uri = self._validate_redirect_uri(
            redirect_uri or settings.oauth_default_redirect_uri
        )
        credentials = await self._app_credentials.get()

        state = generate_oauth_state()
        code_verifier = code_challenge = None
        if self._use_pkce:
            code_verifier, code_challenge = generate_pkce_pair()

        flow = await self._flows.put(
            state,
            user_scope=user_scope,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
            code_challenge=code_challenge,
        )
        self._log_stage(state, FlowStage.STARTED)

        authorization_url = self._provider.build_authorization_url(
            credentials, redirect_uri, state, code_challenge
        )
        await self._flows.mark(state, FlowStage.REDIRECTED)
        self._log_stage(state, FlowStage.REDIRECTED)

        return AuthorizationStart(
            authorization_url=authorization_url,
            state=state,
            expires_at=flow.expires_at,
        )

    async def handle_callback(self, state: str, code: str) -> list[ConnectionCredential]:
        if not code:
            raise ValidationException("Missing authorization code", field="code")

        # Consumed before any network call; a retried callback cannot reuse it.
        flow = await self._flows.consume(state)

        try:
            credentials = await self._app_credentials.get()
            try:
                tokens = await self._provider.exchange_code(
                    credentials, code, flow.redirect_uri, flow.code_verifier
                )
            except ApiRequestError as e:
                raise TokenExchangeFailedError(e.message) from e
            self._log_stage(state, FlowStage.EXCHANGED)

            try:
                tenants = await self._discovery.list_accessible_tenants(tokens.access_token)
            except (ApiRequestError, UpstreamAuthError) as e:
                raise TokenExchangeFailedError(
                    f"could not list accessible sites: {e.message}"
                ) from e
            if not tenants:
                raise TokenExchangeFailedError("the grant does not expose any site")

            grant_id = uuid.uuid4().hex
            connected = [
                await self._store.upsert(flow.user_scope, tenant, tokens, grant_id)
                for tenant in tenants
            ]
        except AppException as e:
            self._log_stage(state, FlowStage.FAILED, e.code)
            raise

        self._log_stage(state, FlowStage.COMPLETED)
        logger.info(
            "Connected %d site(s) for grant %s, scopes=%s",
            len(connected),
            grant_id,
            tokens.scopes,
        )

        for credential in connected:
            try:
                await self._discovery.cache_resources(credential)
            except AppException as e:
                logger.warning(
                    "Initial project discovery failed for site %s: %s",
                    credential.tenant_id,
                    e.message,
                )
        return connected

    def _validate_redirect_uri(self, redirect_uri: str) -> str:
        redirect_uri = redirect_uri.strip()
        parsed = urlparse(redirect_uri)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationException(
                "redirect_uri must be an absolute http(s) URL", field="redirect_uri"
            )
        if self._allowed_redirect_uris and redirect_uri not in self._allowed_redirect_uris:
            raise ValidationException(
                "redirect_uri is not in the allowed list", field="redirect_uri"
            )
        return redirect_uri

    def _log_stage(self, state: str, stage: FlowStage, detail: str | None = None) -> None:
        if detail:
            logger.info("OAuth flow %s... -> %s (%s)", state[:8], stage.value, detail)
        else:
            logger.info("OAuth flow %s... -> %s", state[:8], stage.value)
