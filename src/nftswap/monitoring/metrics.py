"""
Prometheus metrics for the swap order lifecycle.

Tracks order construction, signing, approvals, fills and status polling.
"""

from prometheus_client import Counter, Histogram, Info
import structlog

logger = structlog.get_logger()


# ============== INFO ==============

nftswap_info = Info(
    'nftswap_build_info',
    'nftswap build information',
)

nftswap_info.info({
    'version': '1.0.0',
    'protocol': '0x-v3',
})


# ============== COUNTERS ==============

# Orders
orders_built_total = Counter(
    'nftswap_orders_built_total',
    'Total orders built',
)

orders_signed_total = Counter(
    'nftswap_orders_signed_total',
    'Total orders signed',
    ['signature_type'],
)

signature_verifications_total = Counter(
    'nftswap_signature_verifications_total',
    'Total order signature verifications',
    ['result'],
)

# Transactions
approvals_submitted_total = Counter(
    'nftswap_approvals_submitted_total',
    'Total approval transactions submitted',
    ['token_type', 'approve'],
)

fills_submitted_total = Counter(
    'nftswap_fills_submitted_total',
    'Total fill transactions submitted',
    ['path'],
)

cancels_submitted_total = Counter(
    'nftswap_cancels_submitted_total',
    'Total cancel transactions submitted',
    ['kind'],
)

transaction_failures_total = Counter(
    'nftswap_transaction_failures_total',
    'Total rejected transaction submissions',
    ['action'],
)

# Tracking
status_polls_total = Counter(
    'nftswap_status_polls_total',
    'Total order status polls',
    ['status'],
)


# ============== HISTOGRAMS ==============

order_wait_seconds = Histogram(
    'nftswap_order_wait_seconds',
    'Time spent waiting for an order to settle',
    ['outcome'],
    buckets=[1, 5, 10, 30, 60, 120, 300, 600],
)


# ============== HELPERS ==============

def track_order_wait(outcome: str, elapsed: float):
    """Track how an order wait ended."""
    order_wait_seconds.labels(outcome=outcome).observe(elapsed)
    logger.debug(
        "metric_order_wait",
        outcome=outcome,
        elapsed_seconds=round(elapsed, 3),
    )


__all__ = [
    "nftswap_info",
    "orders_built_total",
    "orders_signed_total",
    "signature_verifications_total",
    "approvals_submitted_total",
    "fills_submitted_total",
    "cancels_submitted_total",
    "transaction_failures_total",
    "status_polls_total",
    "order_wait_seconds",
    "track_order_wait",
]
