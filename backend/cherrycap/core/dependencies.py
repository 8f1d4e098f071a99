"""FastAPI dependency chain: DB session, bearer JWT -> user id, rate limiter."""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cherrycap.core.security import decode_access_token
from cherrycap.db.session import async_session_factory
from cherrycap.services.rate_limit import DEFAULT_RATE_LIMITS, RateLimiter

bearer_scheme = HTTPBearer(auto_error=False)

_rate_limiter = RateLimiter(DEFAULT_RATE_LIMITS)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for handlers that manage their own transactions."""
    return async_session_factory


async def get_db(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session. Commits on success, rolls back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


async def get_current_user_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    """Extract and verify the Bearer token, returning JWT claims."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    try:
        claims = await decode_access_token(credentials.credentials)
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}") from e

    return claims


async def get_current_user_id(claims: dict = Depends(get_current_user_claims)) -> str:
    """The identity provider's opaque user id (``sub`` claim)."""
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token missing sub claim")
    return user_id
