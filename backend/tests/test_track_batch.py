"""Batch ingestion endpoint: POST/OPTIONS /track/batch."""

import pytest
from httpx import AsyncClient

from cherrycap.models.page_view import PageView
from cherrycap.models.performance_sample import PerformanceSample
from cherrycap.models.tracked_session import TrackedSession
from cherrycap.models.tracking_event import TrackingEvent
from tests.helpers import count_rows, fetch_all, seed_site

pytestmark = pytest.mark.tracking

SITE = "cc_batchsite001"


async def test_batch_preflight(client: AsyncClient):
    response = await client.options("/track/batch")
    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Origin"] == "*"


async def test_one_bad_event_does_not_fail_the_batch(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id=SITE)
    events = [
        {
            "type": "session",
            "data": {"siteId": SITE, "sessionId": "s1", "visitorId": "v1"},
        },
        {"type": "pageview", "data": {"siteId": SITE, "sessionId": "s1", "path": "/"}},
        {"type": "pageview", "data": {"siteId": "cc_stalesite00", "sessionId": "s1", "path": "/x"}},
        {"type": "performance", "data": {"siteId": SITE, "sessionId": "s1", "path": "/"}},
        {"type": "event", "data": {"siteId": SITE, "sessionId": "s1", "name": "cta"}},
    ]

    response = await client.post("/track/batch", json={"events": events})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["results"] == [
        {"success": True},
        {"success": True},
        {"success": False},
        {"success": True},
        {"success": True},
    ]

    persisted = sum(
        [
            await count_rows(session_factory, TrackedSession),
            await count_rows(session_factory, PageView),
            await count_rows(session_factory, PerformanceSample),
            await count_rows(session_factory, TrackingEvent),
        ]
    )
    assert persisted == len(events) - 1
    (view,) = await fetch_all(session_factory, PageView)
    assert view.path == "/"


async def test_malformed_items_are_isolated(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id=SITE)
    events = [
        "garbage",
        {"type": "teleport", "data": {"siteId": SITE}},
        {"type": "pageview", "data": {"siteId": SITE, "sessionId": "s1"}},
        {"type": "event", "data": {"siteId": SITE, "sessionId": "s1", "name": "ok"}},
    ]

    response = await client.post("/track/batch", json={"events": events})
    assert response.status_code == 200
    assert [r["success"] for r in response.json()["results"]] == [False, False, False, True]
    assert await count_rows(session_factory, TrackingEvent) == 1


async def test_batch_end_event(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id=SITE)
    events = [
        {"type": "session", "data": {"siteId": SITE, "sessionId": "s9", "visitorId": "v"}},
        {"type": "end", "data": {"sessionId": "s9"}},
    ]
    response = await client.post("/track/batch", json={"events": events})
    assert response.json()["results"] == [{"success": True}, {"success": True}]


async def test_empty_batch(client: AsyncClient):
    response = await client.post("/track/batch", json={"events": []})
    assert response.status_code == 200
    assert response.json() == {"success": True, "results": []}


@pytest.mark.parametrize("body", [{"events": {"type": "session"}}, {}, [1, 2]])
async def test_non_array_events_returns_400(client: AsyncClient, body):
    response = await client.post("/track/batch", json=body)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Events must be an array"}


async def test_batch_malformed_json_returns_500(client: AsyncClient):
    response = await client.post("/track/batch", content=b"[{")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
