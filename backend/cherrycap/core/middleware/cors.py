"""CORS configuration: allowlisted dashboard origins, open tracking endpoints."""

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from cherrycap.core.config import settings

# Sent on every /track response; tracked sites live on arbitrary origins.
TRACKING_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}

TRACKING_PATH_PREFIX = "/track"


def get_cors_config() -> dict:
    """Return CORS middleware kwargs for the dashboard API."""
    return {
        "allow_origins": settings.allowed_origins_list,
        "allow_credentials": False,
        "allow_methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        "allow_headers": [
            "Authorization",
            "Content-Type",
            "X-Request-Id",
        ],
    }


def is_tracking_path(path: str) -> bool:
    return path == TRACKING_PATH_PREFIX or path.startswith(TRACKING_PATH_PREFIX + "/")


class DashboardCORSMiddleware(CORSMiddleware):
    """Starlette CORS for the dashboard API that leaves /track* untouched.

    Tracking routes answer their own preflights with ``TRACKING_CORS_HEADERS``;
    running them through the allowlist would reject every customer origin.
    """

    def __init__(self, app: ASGIApp, **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.downstream = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and is_tracking_path(scope["path"]):
            await self.downstream(scope, receive, send)
            return
        await super().__call__(scope, receive, send)
