"""OAuth site connections: credential storage, token refresh and health checks."""
