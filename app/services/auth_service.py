"""Bearer-token verification against Supabase Auth."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from supabase import Client, create_client

from app.core.config import Settings, get_settings
from app.core.exceptions import AuthError, ConfigurationError

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthError: If the header is missing or not a bearer credential.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Authentication required")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthError("Authentication required")
    return token


class AuthService:
    """Validates caller tokens; the user identity is only used as a gate."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.supabase_url = settings.supabase_url
        self.supabase_anon_key = settings.supabase_anon_key
        self._client: Client | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = create_client(self.supabase_url, self.supabase_anon_key)
        return self._client

    def _get_user(self, token: str) -> Any:
        response = self._get_client().auth.get_user(token)
        return getattr(response, "user", None)

    async def verify(self, authorization: str | None) -> Any:
        """Verify the request's bearer token and return the Supabase user.

        Raises:
            AuthError: Missing, malformed or rejected token.
            ConfigurationError: Supabase URL or anon key not set.
        """
        token = extract_bearer_token(authorization)

        if not self.is_configured:
            raise ConfigurationError("Authentication backend not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY.")

        try:
            # supabase-py's sync client blocks; keep it off the event loop
            user = await asyncio.to_thread(self._get_user, token)
        except Exception as e:
            logger.warning(f"Token verification failed: {type(e).__name__}")
            raise AuthError("Invalid authentication") from e

        if user is None:
            raise AuthError("Invalid authentication")
        return user


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get the singleton AuthService instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
