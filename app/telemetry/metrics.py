"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

WAVEFORM_COUNTER = Counter(
    "waveform_generation_total",
    "Waveform pipeline runs by mode and outcome",
    ("mode", "outcome"),
)

WAVEFORM_LATENCY = Histogram(
    "waveform_generation_duration_seconds",
    "Wall-clock duration of waveform pipeline runs",
    ("mode",),
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0),
)

TOKEN_REFRESH_COUNTER = Counter(
    "dropbox_token_refresh_total",
    "Dropbox access token refresh attempts by outcome",
    ("outcome",),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def observe_waveform(mode: str, outcome: str, duration_seconds: float) -> None:
    """Record one finished pipeline run."""

    WAVEFORM_COUNTER.labels(mode=mode, outcome=outcome).inc()
    WAVEFORM_LATENCY.labels(mode=mode).observe(max(duration_seconds, 0))


def increment_token_refresh(outcome: str) -> None:
    """Count a refresh attempt (``success``, ``rejected``, ``persist_failed``...)."""

    TOKEN_REFRESH_COUNTER.labels(outcome=outcome).inc()
