from datetime import datetime, timedelta, timezone

import jwt

from siteconnect.constants.enums import TokenType
from siteconnect.core.settings import settings


class UserScopeTokenService:
    """
    Bearer tokens issued by the host application.

    The ``sub`` claim is the opaque user scope that owns connections.
    """

    def create_access_token(self, user_scope: str, expires_in_seconds: int = 3600) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_scope,
            "type": TokenType.ACCESS.value,
            "iat": now,
            "exp": now + timedelta(seconds=expires_in_seconds),
        }
        return jwt.encode(
            payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
        )

    def verify_user_scope(self, token: str) -> str | None:
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

        if payload.get("type", TokenType.ACCESS.value) != TokenType.ACCESS.value:
            return None
        user_scope = payload.get("sub")
        if not isinstance(user_scope, str) or not user_scope.strip():
            return None
        return user_scope


token_service = UserScopeTokenService()
