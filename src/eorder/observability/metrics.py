"""Prometheus metrics for the electronic order core.

Counts calls across the backend boundary so failures that are swallowed
for UI responsiveness still show up in monitoring.
"""

from prometheus_client import Counter, Histogram

# Backend boundary
service_calls_total = Counter(
    "eorder_service_calls_total",
    "Total calls to the electronic order backend",
    ["operation", "status"]  # status: success|error
)

service_call_latency_seconds = Histogram(
    "eorder_service_call_latency_seconds",
    "Backend call latency in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# Reconciliation
helper_fetch_failures_total = Counter(
    "eorder_helper_fetch_failures_total",
    "Document type helper fetches that failed during reconciliation"
)

reconciled_rows = Histogram(
    "eorder_reconciled_rows",
    "Parent rows rebuilt per existing-order reconciliation",
    buckets=[0, 1, 2, 5, 10, 25, 50, 100]
)
