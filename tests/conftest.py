"""
Pytest configuration and fixtures for the test suite.
"""

import pytest
from cryptography.fernet import Fernet

from siteconnect.integrations.core.single_flight import SingleFlight
from siteconnect.models.app_credential import StoredAppCredential
from siteconnect.services.app_credential_service import AppCredentialService
from siteconnect.services.authorization_flow_service import AuthorizationFlowService
from siteconnect.services.connection_health_service import ConnectionHealthService
from siteconnect.services.credential_store import CredentialStore
from siteconnect.services.flow_state_store import FlowStateStore
from siteconnect.services.resource_discovery_service import ResourceDiscoveryService
from siteconnect.services.token_refresher import TokenRefresher
from siteconnect.utils.crypto import TokenCipher
from tests.fakes import (
    FakeAppCredentialRepository,
    FakeCachedResourceRepository,
    FakeConnectionCredentialRepository,
    FakeProvider,
    utcnow,
)


@pytest.fixture
def cipher() -> TokenCipher:
    return TokenCipher([Fernet.generate_key().decode()])


@pytest.fixture
def resource_repo() -> FakeCachedResourceRepository:
    return FakeCachedResourceRepository()


@pytest.fixture
def credential_repo(resource_repo) -> FakeConnectionCredentialRepository:
    return FakeConnectionCredentialRepository(resource_repo)


@pytest.fixture
def app_credential_repo(cipher) -> FakeAppCredentialRepository:
    repo = FakeAppCredentialRepository()
    now = utcnow()
    repo.stored = StoredAppCredential(
        client_id="client-abc",
        client_secret_encrypted=cipher.encrypt("secret-xyz"),
        created_at=now,
        updated_at=now,
    )
    return repo


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def credential_store(credential_repo, resource_repo, cipher) -> CredentialStore:
    return CredentialStore(credential_repo, resource_repo, cipher)


@pytest.fixture
def app_credential_service(app_credential_repo, cipher) -> AppCredentialService:
    return AppCredentialService(app_credential_repo, cipher)


@pytest.fixture
def refresher(credential_store, app_credential_service, provider) -> TokenRefresher:
    return TokenRefresher(
        credential_store,
        app_credential_service,
        provider,
        single_flight=SingleFlight(),
        margin_seconds=120,
    )


@pytest.fixture
def discovery(credential_store, refresher, provider) -> ResourceDiscoveryService:
    return ResourceDiscoveryService(credential_store, refresher, provider)


@pytest.fixture
def flow_store() -> FlowStateStore:
    return FlowStateStore(ttl_seconds=600)


@pytest.fixture
def flow_service(
    app_credential_service, flow_store, credential_store, discovery, provider
) -> AuthorizationFlowService:
    return AuthorizationFlowService(
        app_credential_service=app_credential_service,
        flow_state_store=flow_store,
        credential_store=credential_store,
        resource_discovery=discovery,
        provider=provider,
        use_pkce=False,
        allowed_redirect_uris=[],
    )


@pytest.fixture
def health(
    credential_store, refresher, app_credential_service, provider
) -> ConnectionHealthService:
    return ConnectionHealthService(
        credential_store, refresher, app_credential_service, provider
    )
