from __future__ import annotations

from prometheus_client import Counter

ENGAGEMENT_TOGGLES = Counter(
    "reelhub_engagement_toggles_total",
    "Engagement toggles by relation and resulting state",
    ["relation", "state"],
)
VIEWS_RECORDED = Counter(
    "reelhub_views_recorded_total",
    "View events by outcome",
    ["counted"],
)
STORAGE_ERRORS = Counter(
    "reelhub_storage_errors_total",
    "Storage failures surfaced as StorageUnavailable",
    ["operation"],
)
VIEW_COUNTER_REPAIRS = Counter(
    "reelhub_view_counter_repairs_total",
    "Video view counters rewritten by the reconcile pass",
)
