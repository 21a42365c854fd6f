"""Prometheus metrics registry for request observability."""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

UNMATCHED_ROUTE = "unmatched"
OTHER_METHOD = "OTHER"
KNOWN_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"},
)


class MetricsRegistry:
    """Per-process request counters and latency histograms.

    Owns its own CollectorRegistry so that tests and multiple apps in one
    process never share counters.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None, default_collectors: bool = True):
        self.registry = registry or CollectorRegistry()
        if default_collectors:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)

        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "route", "status_code"],
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "route", "status_code"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
            registry=self.registry,
        )

    def observe(self, method: str, route: str | None, status_code: int, duration: float) -> None:
        # Client-chosen verbs outside the standard set share one series
        method = method if method in KNOWN_METHODS else OTHER_METHOD
        labels = (method, route or UNMATCHED_ROUTE, str(status_code))
        self.requests_total.labels(*labels).inc()
        self.request_duration.labels(*labels).observe(max(duration, 0.0))

    def render(self) -> bytes:
        return generate_latest(self.registry)
