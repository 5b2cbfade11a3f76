"""
Prometheus metrics for Record Service.

Tracks HTTP traffic, record operations, store latency and update conflicts.
"""

from prometheus_client import Counter, Histogram

# Request metrics
http_requests_total = Counter(
    "record_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "record_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Record operation metrics
record_operations_total = Counter(
    "record_operations_total",
    "Record service operations",
    ["operation", "outcome"],
)

# Store metrics
store_operation_duration_seconds = Histogram(
    "record_store_operation_duration_seconds",
    "Round-trip time of store primitives in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)

store_errors_total = Counter(
    "record_store_errors_total",
    "Store primitives that failed",
    ["operation", "error_type"],
)

update_conflicts_total = Counter(
    "record_update_conflicts_total",
    "Conditional writes rejected because the stored version changed",
)


def track_operation(operation: str, outcome: str) -> None:
    """Count a record service operation by outcome."""
    record_operations_total.labels(operation=operation, outcome=outcome).inc()


def track_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Track an HTTP request and its latency."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
