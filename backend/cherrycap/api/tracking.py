"""Public ingestion endpoints for the embedded tracking snippet.

No authentication: the public site id inside each payload is the capability.
Every response, errors included, is JSON with the open tracking CORS headers;
nothing raised here reaches the client as a stack trace.

Each dispatched event runs in its own transaction, so one failing event in a
batch rolls back only its own writes.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cherrycap.core.dependencies import get_session_factory
from cherrycap.core.middleware.cors import TRACKING_CORS_HEADERS
from cherrycap.schemas.tracking import (
    EndSessionData,
    EventData,
    PageViewData,
    PerformanceData,
    SessionData,
    TrackingType,
    TrackResult,
)
from cherrycap.services import tracking

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_FIELDS = "Missing required fields"
UNKNOWN_TYPE = "Unknown tracking type"
INVALID_DATA = "Invalid tracking data"
EVENTS_NOT_ARRAY = "Events must be an array"
INTERNAL_ERROR = "Internal server error"

Mutation = Callable[[AsyncSession, Any], Awaitable[TrackResult]]

_HANDLERS: dict[TrackingType, tuple[type[BaseModel], Mutation]] = {
    TrackingType.SESSION: (SessionData, tracking.track_session),
    TrackingType.PAGEVIEW: (PageViewData, tracking.track_page_view),
    TrackingType.PERFORMANCE: (PerformanceData, tracking.track_performance),
    TrackingType.EVENT: (EventData, tracking.track_event),
    TrackingType.END: (EndSessionData, tracking.end_session),
}


class InvalidTrackingRequest(Exception):
    """Client-side payload problem; ``error`` is safe to return as-is."""

    def __init__(self, error: str):
        super().__init__(error)
        self.error = error


def _json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=TRACKING_CORS_HEADERS)


def _failure(error: str, status_code: int) -> JSONResponse:
    return _json({"success": False, "error": error}, status_code=status_code)


def _parse_event(event: Any) -> tuple[TrackingType, BaseModel]:
    """Validate a ``{type, data}`` envelope and its type-specific payload."""
    if not isinstance(event, dict):
        raise InvalidTrackingRequest(MISSING_FIELDS)

    raw_type = event.get("type")
    data = event.get("data")
    if not raw_type or not isinstance(data, dict):
        raise InvalidTrackingRequest(MISSING_FIELDS)

    # "end" only carries a session id; everything else must name its site.
    required = "sessionId" if raw_type == TrackingType.END else "siteId"
    if not data.get(required):
        raise InvalidTrackingRequest(MISSING_FIELDS)

    try:
        event_type = TrackingType(raw_type)
    except (ValueError, TypeError) as exc:
        raise InvalidTrackingRequest(UNKNOWN_TYPE) from exc

    model, _mutation = _HANDLERS[event_type]
    try:
        payload = model.model_validate(data)
    except ValidationError as exc:
        raise InvalidTrackingRequest(INVALID_DATA) from exc

    return event_type, payload


async def _dispatch(
    factory: async_sessionmaker[AsyncSession],
    event_type: TrackingType,
    payload: BaseModel,
) -> TrackResult:
    _model, mutation = _HANDLERS[event_type]
    async with factory() as db, db.begin():
        return await mutation(db, payload)


async def _track_batch_item(factory: async_sessionmaker[AsyncSession], event: Any) -> bool:
    try:
        event_type, payload = _parse_event(event)
        result = await _dispatch(factory, event_type, payload)
    except InvalidTrackingRequest as exc:
        logger.debug("Rejected batch item: %s", exc.error)
        return False
    except Exception:
        logger.exception("Batch tracking item failed")
        return False
    return result.success


@router.options("/track", status_code=204)
async def track_preflight() -> Response:
    return Response(status_code=204, headers=TRACKING_CORS_HEADERS)


@router.post("/track")
async def track(
    request: Request,
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> JSONResponse:
    """Record a single ``{type, data}`` event and return its result verbatim."""
    try:
        body = await request.json()
        event_type, payload = _parse_event(body)
        result = await _dispatch(factory, event_type, payload)
    except InvalidTrackingRequest as exc:
        return _failure(exc.error, 400)
    except Exception:
        logger.exception("Tracking error")
        return _failure(INTERNAL_ERROR, 500)

    return _json(result.to_json())


@router.options("/track/batch", status_code=204)
async def track_batch_preflight() -> Response:
    return Response(status_code=204, headers=TRACKING_CORS_HEADERS)


@router.post("/track/batch")
async def track_batch(
    request: Request,
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> JSONResponse:
    """Record ``{events: [...]}`` sequentially; one result entry per event."""
    try:
        body = await request.json()
        events = body.get("events") if isinstance(body, dict) else None
        if not isinstance(events, list):
            return _failure(EVENTS_NOT_ARRAY, 400)

        results = [{"success": await _track_batch_item(factory, event)} for event in events]
    except Exception:
        logger.exception("Batch tracking error")
        return _failure(INTERNAL_ERROR, 500)

    return _json({"success": True, "results": results})
