"""Prometheus metrics for stock accounting and the order lifecycle."""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter

# Stock accounting ---------------------------------------------------------------------------
STOCK_ADJUSTMENTS_TOTAL: Final = Counter(
    "rental_stock_adjustments_total",
    "Stock adjustments applied, by adjustment type.",
    labelnames=("adjustment_type",),
)

STOCK_REJECTIONS_TOTAL: Final = Counter(
    "rental_stock_rejections_total",
    "Stock operations refused before any mutation.",
    labelnames=("reason",),
)

# Orders -------------------------------------------------------------------------------------
ORDERS_TOTAL: Final = Counter(
    "rental_orders_total",
    "Order lifecycle operations that completed.",
    labelnames=("operation",),
)
