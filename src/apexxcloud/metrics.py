"""Prometheus metrics definitions for the ApexxCloud SDK.

All metrics use the ``apexxcloud_`` prefix for namespace isolation. They are
opt-in: until ``init_metrics()`` is called the module-level references stay
``None``, nothing is registered in the global registry and the ``record_*``
helpers do nothing.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Outbound request counter  (labels: operation, status)
# ---------------------------------------------------------------------------
operations_total: Counter | None = None

# ---------------------------------------------------------------------------
# Pre-signed URL counter  (labels: type)
# ---------------------------------------------------------------------------
signed_urls_total: Counter | None = None

STATUS_SUCCESS = "success"
STATUS_API_ERROR = "api_error"
STATUS_TRANSPORT_ERROR = "transport_error"


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; later calls are no-ops.
    """
    global _initialized
    global operations_total, signed_urls_total

    if _initialized:
        return

    operations_total = Counter(
        "apexxcloud_client_operations_total",
        "Total ApexxCloud API requests by operation and outcome",
        ["operation", "status"],
    )

    signed_urls_total = Counter(
        "apexxcloud_signed_urls_total",
        "Total pre-signed URLs generated by operation type",
        ["type"],
    )

    _initialized = True


def record_operation(operation: str, status: str) -> None:
    """Count one outbound request."""
    if operations_total is not None:
        operations_total.labels(operation=operation, status=status).inc()


def record_signed_url(url_type: str) -> None:
    """Count one generated pre-signed URL."""
    if signed_urls_total is not None:
        signed_urls_total.labels(type=url_type).inc()
