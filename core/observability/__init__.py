"""
Observability Module for the Order Integration Service

Provides:
- Structured logging with correlation IDs
- Metrics collection (order lifecycle, ERP outcomes, processing times)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    increment,
    record_processing_time,
)

from core.observability.logging import (
    CorrelationContext,
    configure_logging,
    get_correlation_id,
    get_logger,
    log_integration_event,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "increment",
    "record_processing_time",
    # Logging
    "CorrelationContext",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "log_integration_event",
    "with_correlation",
]
