from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


@dataclass
class AuthContext:
    access_token: str
    token_type: str = "Bearer"

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"

    def __repr__(self) -> str:
        return f"AuthContext(token_type={self.token_type!r})"


@dataclass
class RequestDefinition:
    method: HttpMethod
    url: str
    operation: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    form: dict[str, str] | None = None
    body: dict[str, Any] | None = None


@dataclass
class ApiResponse:
    status_code: int
    data: Any
    text: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403


@dataclass
class TokenResponse:
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = "Bearer"
    scope: str | None = None

    @property
    def scopes(self) -> list[str]:
        if not self.scope:
            return []
        return self.scope.split()

    def __repr__(self) -> str:
        return (
            f"TokenResponse(expires_in={self.expires_in!r}, scope={self.scope!r}, "
            f"has_refresh_token={self.refresh_token is not None})"
        )


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str | None

    def __repr__(self) -> str:
        return "TokenPair(***)"


@dataclass
class TenantSummary:
    tenant_id: str
    name: str
    url: str
    scopes: list[str] = field(default_factory=list)
    avatar_url: str | None = None


@dataclass
class RemoteUser:
    account_id: str
    display_name: str
    email_address: str | None = None
    avatar_url: str | None = None


@dataclass
class RemoteProject:
    external_id: str
    key: str
    name: str
    project_type: str | None = None
