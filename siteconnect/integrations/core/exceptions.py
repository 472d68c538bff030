from siteconnect.core.exceptions import AppException


class IntegrationException(AppException):
    def __init__(self, code: str, message: str, status_code: int = 400):
        super().__init__(code, message, status_code)


class NotConfiguredError(IntegrationException):
    def __init__(self):
        super().__init__(
            code="NOT_CONFIGURED",
            message="OAuth client credentials are not configured",
            status_code=409,
        )


class InvalidOrExpiredStateError(IntegrationException):
    def __init__(self):
        super().__init__(
            code="INVALID_OR_EXPIRED_STATE",
            message="Invalid or expired OAuth state. Please restart the connection flow.",
            status_code=400,
        )


class TokenExchangeFailedError(IntegrationException):
    def __init__(self, detail: str):
        super().__init__(
            code="TOKEN_EXCHANGE_FAILED",
            message=f"Authorization code exchange failed: {detail}",
            status_code=502,
        )
        self.detail = detail


class UpstreamTimeoutError(IntegrationException):
    def __init__(self, operation: str, timeout: float):
        super().__init__(
            code="UPSTREAM_TIMEOUT",
            message=f"Upstream call '{operation}' timed out after {timeout:g}s",
            status_code=504,
        )
        self.operation = operation


class ReauthorizationRequiredError(IntegrationException):
    def __init__(self, tenant_id: str | None = None, detail: str | None = None):
        target = f" for site {tenant_id}" if tenant_id else ""
        message = f"Authorization is no longer valid{target}; reconnect required"
        if detail:
            message += f" ({detail})"
        super().__init__(
            code="REAUTHORIZATION_REQUIRED",
            message=message,
            status_code=401,
        )
        self.tenant_id = tenant_id


class ConnectionNotFoundError(IntegrationException):
    def __init__(self, tenant_id: str):
        super().__init__(
            code="CONNECTION_NOT_FOUND",
            message=f"No active connection for site {tenant_id}",
            status_code=404,
        )
        self.tenant_id = tenant_id


class ApiRequestError(IntegrationException):
    def __init__(self, upstream_status: int, message: str):
        super().__init__(
            code="API_REQUEST_FAILED",
            message=message,
            status_code=502,
        )
        self.upstream_status = upstream_status


class UpstreamAuthError(IntegrationException):
    def __init__(self, upstream_status: int, message: str):
        super().__init__(
            code="UPSTREAM_AUTH_FAILED",
            message=message,
            status_code=401 if upstream_status == 401 else 403,
        )
        self.upstream_status = upstream_status


class DecryptionError(IntegrationException):
    def __init__(self, field: str):
        super().__init__(
            code="DECRYPTION_FAILED",
            message=f"Stored {field} could not be decrypted with the configured keys",
            status_code=500,
        )


class ConfigurationError(IntegrationException):
    def __init__(self, message: str):
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=message,
            status_code=500,
        )
