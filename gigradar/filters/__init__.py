from .verdict import (
    route_verdict,
    should_blocklist,
    log_verdict_metrics,
)

__all__ = [
    "route_verdict",
    "should_blocklist",
    "log_verdict_metrics",
]
