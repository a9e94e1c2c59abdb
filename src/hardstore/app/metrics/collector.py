"""Prometheus metrics definitions."""

from prometheus_client import Counter, Histogram

# FAST: DB queries, password hashing, request handling (0.5ms ~ 5s)
_BUCKETS_FAST = (
    0.0005, 0.001, 0.002, 0.005, 0.01,
    0.02, 0.05, 0.1, 0.2, 0.5,
    1, 2, 5,
)

HTTP_REQUESTS_TOTAL = Counter(
    "hardstore_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "hardstore_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=_BUCKETS_FAST,
)

# outcome: ALLOW / DENY / LOCKED / INVALID_CREDENTIALS
LOGIN_ATTEMPTS_TOTAL = Counter(
    "hardstore_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],
)
