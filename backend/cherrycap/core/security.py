"""Bearer token verification for dashboard callers.

Two modes, selected by ``AUTH_MOCK``:
- provider: RS256 tokens checked against the identity provider's JWKS
- mock: HS256 tokens signed with ``SECRET_KEY`` (local dev and tests)
"""

import logging
import time

import httpx
from jose import JWTError, jwt

from cherrycap.core.config import settings

logger = logging.getLogger(__name__)

JWKS_TTL_SECONDS = 3600


class JwksCache:
    """Signing keys by ``kid``, refetched when stale or on an unknown ``kid``."""

    def __init__(self, url: str, ttl: float = JWKS_TTL_SECONDS):
        self.url = url
        self.ttl = ttl
        self._keys: dict[str, dict] = {}
        self._fetched_at = 0.0

    def _stale(self) -> bool:
        return not self._keys or time.monotonic() - self._fetched_at > self.ttl

    async def refresh(self) -> None:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.get(self.url)
            resp.raise_for_status()
        self._keys = {k["kid"]: k for k in resp.json().get("keys", []) if "kid" in k}
        self._fetched_at = time.monotonic()
        logger.info("Loaded %d signing keys from %s", len(self._keys), self.url)

    async def get(self, kid: str | None) -> dict:
        if self._stale():
            await self.refresh()
        key = self._keys.get(kid) if kid else None
        if key is None:
            # Provider may have rotated keys since the last fetch.
            await self.refresh()
            key = self._keys.get(kid) if kid else None
        if key is None:
            raise JWTError("Signing key not found in JWKS")
        return key


_jwks = JwksCache(settings.AUTH_JWKS_URL)


async def decode_access_token(token: str) -> dict:
    """Verify ``token`` and return its claims. Raises ``JWTError`` on failure."""
    if settings.AUTH_MOCK:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])

    key = await _jwks.get(jwt.get_unverified_header(token).get("kid"))
    return jwt.decode(
        token,
        key,
        algorithms=["RS256"],
        audience=settings.AUTH_AUDIENCE or None,
        issuer=settings.AUTH_ISSUER or None,
        options={
            "verify_aud": bool(settings.AUTH_AUDIENCE),
            "verify_iss": bool(settings.AUTH_ISSUER),
            "verify_at_hash": False,
        },
    )


def create_mock_access_token(
    sub: str, email: str = "test@example.com", expires_in: int = 900
) -> str:
    """Mint an HS256 token accepted when ``AUTH_MOCK`` is on."""
    now = int(time.time())
    return jwt.encode(
        {"sub": sub, "email": email, "iat": now, "exp": now + expires_in},
        settings.SECRET_KEY,
        algorithm="HS256",
    )
