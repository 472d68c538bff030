from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Site Connect"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    database_host: str = "localhost"
    database_port: int = 5432
    database_user: str = "postgres"
    database_password: str = ""
    database_name: str = "siteconnect"
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10

    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"

    # Newest key first; older keys stay readable until re-encrypted.
    encryption_keys: str = ""

    oauth_state_ttl_seconds: int = 600
    oauth_use_pkce: bool = False
    oauth_default_redirect_uri: str = "http://localhost:3000/settings"
    allowed_redirect_uris: str = ""

    token_refresh_margin_seconds: int = 120
    default_token_lifetime_seconds: int = 3600
    token_sweep_interval_seconds: int = 0
    token_sweep_window_seconds: int = 600

    upstream_timeout_seconds: float = 20.0
    atlassian_auth_base_url: str = "https://auth.atlassian.com"
    atlassian_api_base_url: str = "https://api.atlassian.com"
    atlassian_audience: str = "api.atlassian.com"
    atlassian_scopes: str = (
        "read:jira-work write:jira-work read:jira-user offline_access"
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def allowed_redirect_uri_list(self) -> list[str]:
        return [
            uri.strip() for uri in self.allowed_redirect_uris.split(",") if uri.strip()
        ]

    @property
    def encryption_key_list(self) -> list[str]:
        return [k.strip() for k in self.encryption_keys.split(",") if k.strip()]

    @property
    def atlassian_scope_list(self) -> list[str]:
        return self.atlassian_scopes.split()


settings = Settings()
