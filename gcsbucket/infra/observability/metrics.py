from prometheus_client import Counter, Histogram

# Low-cardinality labels only: the operation name, never the object name.
REQUESTS = Counter(
    "gcs_requests_total",
    "Total requests sent to the storage service",
    ["operation", "method", "status"],
)

LATENCY = Histogram(
    "gcs_request_duration_seconds",
    "Storage request latency in seconds",
    ["operation"],
)
