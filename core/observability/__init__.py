"""
Observability Module for the Tenancy Reconciliation Service

Provides:
- Structured logging with correlation IDs
- Metrics collection (source fetches, match tiers, reconciliation runs)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_match,
    record_reconciliation,
    record_processing_time,
)

from core.observability.logging import (
    configure_logging,
    get_logger,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_match",
    "record_reconciliation",
    "record_processing_time",
    # Logging
    "configure_logging",
    "get_logger",
    "CorrelationContext",
    "with_correlation",
]
