from typing import Any

from siteconnect.integrations.core.types import (
    RemoteProject,
    RemoteUser,
    TenantSummary,
    TokenResponse,
)


def adapt_token_response(raw: dict[str, Any]) -> TokenResponse:
    expires_in = raw.get("expires_in")
    return TokenResponse(
        access_token=raw["access_token"],
        refresh_token=raw.get("refresh_token") or None,
        expires_in=int(expires_in) if expires_in is not None else None,
        token_type=raw.get("token_type", "Bearer"),
        scope=raw.get("scope"),
    )


def adapt_accessible_resource(raw: dict[str, Any]) -> TenantSummary:
    return TenantSummary(
        tenant_id=raw.get("id", ""),
        name=raw.get("name", ""),
        url=raw.get("url", ""),
        scopes=list(raw.get("scopes") or []),
        avatar_url=raw.get("avatarUrl"),
    )


def adapt_accessible_resources(raw_resources: list[dict[str, Any]]) -> list[TenantSummary]:
    tenants: dict[str, TenantSummary] = {}
    for raw in raw_resources:
        tenant = adapt_accessible_resource(raw)
        if tenant.tenant_id and tenant.tenant_id not in tenants:
            tenants[tenant.tenant_id] = tenant
    return list(tenants.values())


def adapt_user(raw_user: dict[str, Any]) -> RemoteUser:
    avatars = raw_user.get("avatarUrls") or {}
    return RemoteUser(
        account_id=raw_user.get("accountId", ""),
        display_name=raw_user.get("displayName", ""),
        email_address=raw_user.get("emailAddress"),
        avatar_url=avatars.get("48x48"),
    )


def adapt_project(raw_project: dict[str, Any]) -> RemoteProject:
    return RemoteProject(
        external_id=str(raw_project.get("id", "")),
        key=raw_project.get("key", ""),
        name=raw_project.get("name", ""),
        project_type=raw_project.get("projectTypeKey"),
    )


def adapt_projects(raw_projects: list[dict[str, Any]]) -> list[RemoteProject]:
    return [adapt_project(p) for p in raw_projects if p.get("id") is not None]


def describe_token_error(status_code: int, data: Any, text: str) -> tuple[str, str]:
    """Return ``(error_code, diagnostic)`` from an OAuth error body."""
    if isinstance(data, dict) and data.get("error"):
        error = str(data["error"])
        description = data.get("error_description") or ""
        return error, f"{error}: {description}".rstrip(": ")
    return "http_error", f"HTTP {status_code}: {text[:200]}".rstrip(": ")
