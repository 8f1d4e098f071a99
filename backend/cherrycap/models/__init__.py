from cherrycap.models.page_view import PageView
from cherrycap.models.performance_sample import PerformanceSample
from cherrycap.models.rate_limit_record import RateLimitRecord
from cherrycap.models.site import Site
from cherrycap.models.tracked_session import TrackedSession
from cherrycap.models.tracking_event import TrackingEvent

__all__ = [
    "PageView",
    "PerformanceSample",
    "RateLimitRecord",
    "Site",
    "TrackedSession",
    "TrackingEvent",
]
