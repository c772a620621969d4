"""Prometheus metrics for token refreshes, upstream calls and HTTP traffic"""

from prometheus_client import Counter, Histogram

# Identity endpoint
token_refresh_counter = Counter(
    "pushpay_token_refresh_total",
    "Bearer token refresh attempts",
    ["outcome"],  # success | failure
)

# Pushpay data API
upstream_latency_histogram = Histogram(
    "pushpay_request_latency_seconds",
    "Pushpay data API response time",
    ["endpoint"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

upstream_failure_counter = Counter(
    "pushpay_request_failures_total",
    "Failed Pushpay data API calls",
    ["kind"],  # timeout | transport | status | payload
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_token_refresh(success: bool) -> None:
    """Count an identity endpoint round trip by outcome"""
    token_refresh_counter.labels(outcome="success" if success else "failure").inc()
