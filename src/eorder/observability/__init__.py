"""Observability module: structured logging, correlation IDs and metrics."""

from .logging_config import configure_logging, JSONFormatter, CorrelationIDFilter
from .metrics import (
    service_calls_total,
    service_call_latency_seconds,
    helper_fetch_failures_total,
    reconciled_rows,
)
from .correlation import (
    NO_CORRELATION_ID,
    correlation_id_var,
    get_correlation_id,
    set_correlation_id,
    operation_scope,
)

__all__ = [
    # Logging
    "configure_logging",
    "JSONFormatter",
    "CorrelationIDFilter",
    # Metrics
    "service_calls_total",
    "service_call_latency_seconds",
    "helper_fetch_failures_total",
    "reconciled_rows",
    # Correlation
    "NO_CORRELATION_ID",
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
    "operation_scope",
]
