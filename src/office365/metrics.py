"""
Prometheus metrics definitions for the Office 365 client.

Naming conventions: snake_case, office365_ prefix.
"""

from prometheus_client import Counter, Histogram

# ==============================================================================
# COUNTERS - Monotonically increasing values
# ==============================================================================

requests_total = Counter(
    "office365_requests_total",
    "Total authenticated API requests",
    ["method", "status"],
    # status: HTTP status code, or "error" for transport/decode failures
)

pages_fetched_total = Counter(
    "office365_pages_fetched_total",
    "Collection pages fetched by the pagination engine",
)

token_refreshes_total = Counter(
    "office365_token_refreshes_total",
    "Access token refresh attempts",
    ["status"],
    # status: success, failed
)

# ==============================================================================
# HISTOGRAMS - Latency distributions
# ==============================================================================

request_duration_seconds = Histogram(
    "office365_request_duration_seconds",
    "Authenticated API request duration",
    ["method"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)
