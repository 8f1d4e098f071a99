"""Site registry: creation, ownership scoping, validation, cascading delete."""

import re

import pytest
from httpx import AsyncClient

from cherrycap.core.security import create_mock_access_token
from cherrycap.models.page_view import PageView
from cherrycap.models.performance_sample import PerformanceSample
from cherrycap.models.site import Site
from cherrycap.models.tracked_session import TrackedSession
from cherrycap.models.tracking_event import TrackingEvent
from cherrycap.services.sites import DEFAULT_SITE_ID_FORMAT, SiteIdFormat, normalize_domain
from tests.conftest import auth_headers
from tests.helpers import count_rows, seed_rows, seed_site

pytestmark = pytest.mark.sites

OWNER = "owner-1"
STRANGER = "owner-2"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("HTTPS://Example.com/", "example.com"),
        ("example.com", "example.com"),
        ("http://example.com", "example.com"),
        ("  Blog.Example.com/  ", "blog.example.com"),
        ("example.com/docs/", "example.com/docs"),
    ],
)
def test_normalize_domain(raw: str, expected: str):
    assert normalize_domain(raw) == expected


def test_site_id_format():
    pattern = re.compile(r"^cc_[a-z0-9]{12}$")
    ids = {DEFAULT_SITE_ID_FORMAT.generate() for _ in range(50)}
    assert all(pattern.match(i) for i in ids)
    assert len(ids) == 50


def test_site_id_format_is_configurable():
    fmt = SiteIdFormat(prefix="t_", alphabet="ab", length=4)
    assert re.fullmatch(r"t_[ab]{4}", fmt.generate())


async def test_create_site(client: AsyncClient):
    response = await client.post(
        "/api/v1/sites",
        json={"name": "Marketing", "domain": "HTTPS://Example.com/"},
        headers=auth_headers(sub=OWNER),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Marketing"
    assert body["domain"] == "example.com"
    assert body["is_active"] is True
    assert re.fullmatch(r"cc_[a-z0-9]{12}", body["site_id"])


async def test_create_site_requires_auth(client: AsyncClient):
    response = await client.post(
        "/api/v1/sites", json={"name": "Marketing", "domain": "example.com"}
    )
    assert response.status_code == 401


async def test_create_site_rejects_empty_domain(client: AsyncClient):
    response = await client.post(
        "/api/v1/sites",
        json={"name": "Marketing", "domain": "https://"},
        headers=auth_headers(sub=OWNER),
    )
    assert response.status_code == 422
    assert response.headers["content-type"].startswith("application/problem+json")


async def test_list_sites_only_returns_callers_sites(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id="cc_mine00000001", user_id=OWNER)
    await seed_site(session_factory, site_id="cc_theirs000001", user_id=STRANGER)

    response = await client.get("/api/v1/sites", headers=auth_headers(sub=OWNER))
    assert response.status_code == 200
    assert [s["site_id"] for s in response.json()] == ["cc_mine00000001"]


async def test_get_other_users_site_is_404(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id="cc_theirs000001", user_id=STRANGER)

    response = await client.get(
        "/api/v1/sites/cc_theirs000001", headers=auth_headers(sub=OWNER)
    )
    assert response.status_code == 404

    own = await client.get(
        "/api/v1/sites/cc_theirs000001", headers=auth_headers(sub=STRANGER)
    )
    assert own.status_code == 200
    assert own.json()["site_id"] == "cc_theirs000001"


async def test_deactivated_site_stops_accepting_events(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id="cc_paused000001", user_id=OWNER)

    response = await client.patch(
        "/api/v1/sites/cc_paused000001",
        json={"is_active": False},
        headers=auth_headers(sub=OWNER),
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    tracked = await client.post(
        "/track",
        json={
            "type": "session",
            "data": {
                "siteId": "cc_paused000001",
                "sessionId": "sess-1",
                "visitorId": "visitor-1",
                "device": "desktop",
                "browser": "Chrome",
                "os": "macOS",
            },
        },
    )
    assert tracked.status_code == 200
    assert tracked.json() == {"success": False, "error": "Invalid or inactive site"}
    assert await count_rows(session_factory, TrackedSession) == 0


async def test_patch_does_not_change_public_id(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id="cc_rename000001", user_id=OWNER)

    response = await client.patch(
        "/api/v1/sites/cc_rename000001",
        json={"name": "Renamed", "domain": "http://new.example/"},
        headers=auth_headers(sub=OWNER),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["site_id"] == "cc_rename000001"
    assert body["name"] == "Renamed"
    assert body["domain"] == "new.example"


async def test_delete_site_cascades_tracked_data(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id="cc_doomed000001", user_id=OWNER)
    await seed_site(session_factory, site_id="cc_keeper000001", user_id=OWNER)
    ts = 1_700_000_000_000
    rows = []
    for site_id in ("cc_doomed000001", "cc_keeper000001"):
        rows += [
            TrackedSession(
                site_id=site_id,
                session_id=f"{site_id}-sess",
                visitor_id="v1",
                start_time=ts,
                last_activity=ts,
                device="desktop",
                browser="Chrome",
                os="macOS",
            ),
            PageView(site_id=site_id, session_id=f"{site_id}-sess", path="/", timestamp=ts),
            PerformanceSample(
                site_id=site_id, session_id=f"{site_id}-sess", path="/", timestamp=ts
            ),
            TrackingEvent(
                site_id=site_id, session_id=f"{site_id}-sess", name="signup", timestamp=ts
            ),
        ]
    await seed_rows(session_factory, *rows)

    response = await client.delete(
        "/api/v1/sites/cc_doomed000001", headers=auth_headers(sub=OWNER)
    )
    assert response.status_code == 204

    for model in (TrackedSession, PageView, PerformanceSample, TrackingEvent):
        assert await count_rows(session_factory, model, model.site_id == "cc_doomed000001") == 0
        assert await count_rows(session_factory, model, model.site_id == "cc_keeper000001") == 1
    assert await count_rows(session_factory, Site) == 1


async def test_delete_other_users_site_is_404(client: AsyncClient, session_factory):
    await seed_site(session_factory, site_id="cc_theirs000001", user_id=STRANGER)

    response = await client.delete(
        "/api/v1/sites/cc_theirs000001", headers=auth_headers(sub=OWNER)
    )
    assert response.status_code == 404
    assert await count_rows(session_factory, Site) == 1


async def test_validate_known_site(client: AsyncClient, session_factory):
    await seed_site(
        session_factory, site_id="cc_valid0000001", domain="shop.example", is_active=False
    )

    response = await client.get("/api/v1/sites/validate/cc_valid0000001")
    assert response.status_code == 200
    assert response.json() == {"valid": True, "domain": "shop.example", "isActive": False}


async def test_validate_unknown_site(client: AsyncClient):
    response = await client.get("/api/v1/sites/validate/cc_nothere00001")
    assert response.status_code == 200
    assert response.json() == {"valid": False}


async def test_dashboard_preflight_from_allowed_origin(client: AsyncClient):
    response = await client.options(
        "/api/v1/sites",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization,content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


async def test_dashboard_preflight_from_unknown_origin_is_rejected(client: AsyncClient):
    response = await client.options(
        "/api/v1/sites",
        headers={
            "Origin": "https://evil.example",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code == 400


async def test_invalid_bearer_token_is_401(client: AsyncClient):
    response = await client.get(
        "/api/v1/sites", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


async def test_expired_token_is_401(client: AsyncClient):
    token = create_mock_access_token(sub=OWNER, expires_in=-60)
    response = await client.get("/api/v1/sites", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
