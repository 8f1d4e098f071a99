"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cherrycap import __version__
from cherrycap.api.tracking import router as tracking_router
from cherrycap.api.v1.router import api_v1_router
from cherrycap.core.exceptions import (
    ProblemDetailError,
    http_exception_handler,
    problem_detail_handler,
    validation_exception_handler,
)
from cherrycap.core.logging import configure_logging
from cherrycap.core.middleware.cors import DashboardCORSMiddleware, get_cors_config
from cherrycap.core.middleware.request_id import RequestIdMiddleware

configure_logging()

app = FastAPI(
    title="CherryCap Analytics API",
    version=__version__,
    docs_url="/docs",
    openapi_url="/openapi.json",
)

# Middleware (last added = first executed)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(DashboardCORSMiddleware, **get_cors_config())

# Exception handlers (RFC 7807)
app.add_exception_handler(ProblemDetailError, problem_detail_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Routes
app.include_router(tracking_router, tags=["tracking"])
app.include_router(api_v1_router, prefix="/api/v1")
