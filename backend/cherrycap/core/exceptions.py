"""RFC 7807 Problem Details error handling."""

import math

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ProblemDetailError(Exception):
    """Raise for RFC 7807 problem+json responses."""

    def __init__(
        self,
        status: int,
        title: str,
        detail: str,
        error_type: str | None = None,
        extensions: dict | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(detail)
        self.status = status
        self.title = title
        self.detail = detail
        self.error_type = error_type or "about:blank"
        self.extensions = extensions or {}
        self.headers = headers


class RateLimitExceededError(ProblemDetailError):
    """A caller exhausted its sliding-window allowance for an action."""

    code = "RATE_LIMITED"

    def __init__(self, action: str, retry_after_ms: int):
        self.action = action
        self.retry_after_ms = retry_after_ms
        self.retry_after_seconds = max(math.ceil(retry_after_ms / 1000), 0)
        super().__init__(
            status=429,
            title="Too Many Requests",
            detail=(
                f"Too many requests for {action}. "
                f"Try again in {self.retry_after_seconds} seconds"
            ),
            extensions={"code": self.code, "retry_after": self.retry_after_seconds},
            headers={"Retry-After": str(self.retry_after_seconds)},
        )


async def problem_detail_handler(request: Request, exc: ProblemDetailError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status,
        content={
            "type": exc.error_type,
            "title": exc.title,
            "status": exc.status,
            "detail": exc.detail,
            "instance": str(request.url.path),
            **exc.extensions,
        },
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": "about:blank",
            "title": exc.detail if isinstance(exc.detail, str) else "Error",
            "status": exc.status_code,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        headers=getattr(exc, "headers", None),
        media_type="application/problem+json",
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "type": "about:blank",
            "title": "Validation Error",
            "status": 422,
            "detail": jsonable_errors(exc),
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Strip non-serializable ``ctx`` values (e.g. exception instances)."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors
