from __future__ import annotations

import logging
from typing import Protocol

import httpx

from pwadir.core.config import Settings
from pwadir.core.models import User


logger = logging.getLogger(__name__)


class InvalidToken(RuntimeError):
    pass


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> User: ...


class TokenInfoVerifier:
    """Verify identity tokens against an OAuth token-info endpoint."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client

    async def _fetch_claims(self, token: str) -> dict:
        params = {"id_token": token}
        timeout = self.settings.http_timeout_seconds
        if self._client is not None:
            response = await self._client.get(self.settings.tokeninfo_url, params=params, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(self.settings.tokeninfo_url, params=params)
        if response.status_code != 200:
            raise InvalidToken(f"Token rejected by identity provider (HTTP {response.status_code})")
        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidToken("Malformed identity provider response") from exc
        if not isinstance(payload, dict):
            raise InvalidToken("Malformed identity provider response")
        return payload

    async def verify(self, token: str) -> User:
        if not token:
            raise InvalidToken("Missing identity token")
        try:
            claims = await self._fetch_claims(token)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            raise InvalidToken(f"Unable to verify identity token: {exc}") from exc

        audience = str(claims.get("aud") or "")
        if self.settings.client_id and audience != self.settings.client_id:
            raise InvalidToken("Identity token was issued for a different client")

        subject = claims.get("sub")
        if not subject:
            raise InvalidToken("Identity token has no subject")
        return User(user_id=str(subject), email=claims.get("email"), name=claims.get("name"))
