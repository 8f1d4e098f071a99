"""Dashboard analytics response schemas."""

from pydantic import BaseModel


class OverviewStats(BaseModel):
    visitors: int
    sessions: int
    page_views: int
    bounce_rate: float
    avg_duration: int
    pages_per_session: float


class TrafficPoint(BaseModel):
    date: str
    name: str
    visitors: int
    page_views: int


class NamedCount(BaseModel):
    name: str
    value: int


class TopPage(BaseModel):
    page: str
    views: int
    unique_visitors: int


class PerformancePoint(BaseModel):
    date: str
    name: str
    load_time: int
    ttfb: int
    fcp: int


class ActiveVisitors(BaseModel):
    active: int
