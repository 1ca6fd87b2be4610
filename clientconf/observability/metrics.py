"""Prometheus metrics for configuration resolution."""

from prometheus_client import Counter

RESOLUTIONS = Counter(
    "clientconf_resolutions_total",
    "Total number of schema resolutions",
    labelnames=["schema", "outcome"],
)

VIOLATIONS = Counter(
    "clientconf_violations_total",
    "Total number of configuration violations found",
    labelnames=["schema", "kind"],
)
