"""Prometheus metrics definitions for camgate.

All metrics use the ``camgate_`` prefix. They are exported on a separate
listener (``observability.metrics_port``) so the gateway's own routes stay
unchanged. Counters reset to zero on restart.
"""

from __future__ import annotations

from prometheus_client import Counter, start_http_server

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

requests_total: Counter | None = None
auth_failures_total: Counter | None = None
bytes_streamed_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once. Until it has been called the recording
    helpers below do nothing and no collectors exist in the global registry.
    """
    global _initialized
    global requests_total, auth_failures_total, bytes_streamed_total

    if _initialized:
        return

    requests_total = Counter(
        "camgate_requests_total",
        "Authenticated requests by route and response status",
        ["route", "status"],
    )

    auth_failures_total = Counter(
        "camgate_auth_failures_total",
        "Requests rejected with 401",
    )

    bytes_streamed_total = Counter(
        "camgate_bytes_streamed_total",
        "Object bytes streamed to clients",
    )

    _initialized = True


def start_exporter(port: int, host: str = "0.0.0.0") -> None:
    """Initialise metrics and serve them on ``port`` in a background thread."""
    init_metrics()
    start_http_server(port, addr=host)


def record_request(route: str, status: int) -> None:
    if requests_total is not None:
        requests_total.labels(route=route, status=str(status)).inc()


def record_auth_failure() -> None:
    if auth_failures_total is not None:
        auth_failures_total.inc()


def record_bytes_streamed(count: int) -> None:
    if bytes_streamed_total is not None:
        bytes_streamed_total.inc(count)
