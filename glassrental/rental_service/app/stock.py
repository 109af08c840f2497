"""Stock accounting across unit groupings that share one physical glass pool.

Each ``stock_items`` row counts stock in its own denomination (single glasses,
small boxes of 6, large boxes of 48). The rentable pool for a glass type is the
sum of ``current_stock * glasses_per_unit`` over all of its rows, so drawing
down any grouping lowers the availability every grouping of that type reports.

Derived values (status, per-row glass totals, pool size) are computed here at
read time and never stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from opentelemetry import trace

from .errors import InsufficientStock, InvalidAdjustment, NotFound
from .metrics import STOCK_ADJUSTMENTS_TOTAL, STOCK_REJECTIONS_TOTAL
from .models import ADJUSTMENT_TYPES, GLASSES_PER_UNIT, StockAdjustment, StockItem
from .repository import RentalRepository

_LOGGER = logging.getLogger(__name__)
_TRACER = trace.get_tracer(__name__)


def glasses_per_unit(unit_type: str) -> int:
    try:
        return GLASSES_PER_UNIT[unit_type]
    except KeyError as exc:
        raise ValueError(f"unknown unit type: {unit_type}") from exc


def stock_status(current_stock: int, low_stock_threshold: int) -> str:
    if current_stock == 0:
        return "out_of_stock"
    if current_stock <= low_stock_threshold:
        return "low_stock"
    return "in_stock"


@dataclass
class StockSnapshot:
    id: str
    glass_type: str
    unit_type: str
    glasses_per_unit: int
    price_per_unit: int
    current_stock: int
    low_stock_threshold: int
    total_glasses_for_unit_type: int
    total_available_glasses: int
    stock_status: str
    updated_at: datetime

    @classmethod
    def from_item(cls, item: StockItem, pool: int) -> StockSnapshot:
        return cls(
            id=item.id,
            glass_type=item.glass_type,
            unit_type=item.unit_type,
            glasses_per_unit=item.glasses_per_unit,
            price_per_unit=item.price_per_unit,
            current_stock=item.current_stock,
            low_stock_threshold=item.low_stock_threshold,
            total_glasses_for_unit_type=item.current_stock * item.glasses_per_unit,
            total_available_glasses=max(pool, 0),
            stock_status=stock_status(item.current_stock, item.low_stock_threshold),
            updated_at=item.updated_at,
        )


@dataclass
class OrderableStock:
    stock_item_id: str
    glass_type: str
    available_glasses: int
    price_per_unit: int


@dataclass
class StockAlert:
    stock_item_id: str
    glass_type: str
    unit_type: str
    alert_type: str
    current_stock: int
    low_stock_threshold: int
    raised_at: datetime


class StockService:
    """Single source of truth for how much of each glass type can still be rented."""

    def __init__(self, repository: RentalRepository) -> None:
        self.repository = repository

    async def get_available_glasses(self, glass_type: str) -> int:
        return max(await self.repository.pool_glasses(glass_type), 0)

    async def get_stock_overview(self) -> list[StockSnapshot]:
        items = await self.repository.list_stock_items()
        pools = await self.repository.pool_glasses_by_type()
        return [StockSnapshot.from_item(item, pools.get(item.glass_type, 0)) for item in items]

    async def get_stock_for_orders(self) -> list[OrderableStock]:
        """Individual-glass rows that can take an order, with the quantity ``reserve`` would accept."""

        items = await self.repository.list_stock_items(unit_type="individual")
        orderable = [
            OrderableStock(
                stock_item_id=item.id,
                glass_type=item.glass_type,
                available_glasses=self.available_units(item),
                price_per_unit=item.price_per_unit,
            )
            for item in items
        ]
        return [entry for entry in orderable if entry.available_glasses > 0]

    async def get_stock_adjustments(self, stock_item_id: str | None = None) -> list[StockAdjustment]:
        return await self.repository.list_adjustments(stock_item_id=stock_item_id)

    async def get_active_stock_alerts(self) -> list[StockAlert]:
        alerts = []
        for item in await self.repository.list_stock_items():
            status = stock_status(item.current_stock, item.low_stock_threshold)
            if status == "in_stock":
                continue
            alerts.append(
                StockAlert(
                    stock_item_id=item.id,
                    glass_type=item.glass_type,
                    unit_type=item.unit_type,
                    alert_type=status,
                    current_stock=item.current_stock,
                    low_stock_threshold=item.low_stock_threshold,
                    raised_at=item.updated_at,
                )
            )
        alerts.sort(key=lambda alert: alert.raised_at, reverse=True)
        return alerts

    async def adjust_stock(
        self,
        glass_type: str,
        unit_type: str,
        quantity_change: int,
        adjustment_type: str,
        reason: str | None = None,
        *,
        reference_id: str | None = None,
    ) -> StockAdjustment:
        item = await self.repository.find_stock_item(glass_type, unit_type)
        if item is None:
            raise NotFound("Stock item", f"{glass_type}/{unit_type}")
        return await self.apply_adjustment(
            item,
            quantity_change,
            adjustment_type,
            reason=reason,
            reference_id=reference_id,
        )

    async def apply_adjustment(
        self,
        item: StockItem,
        quantity_change: int,
        adjustment_type: str,
        *,
        reason: str | None = None,
        reference_id: str | None = None,
    ) -> StockAdjustment:
        """Apply a signed change to ``item`` and append its audit record.

        The stock write and the audit append run in the caller's transaction; if
        either fails the exception propagates and the whole unit is rolled back.
        """

        if adjustment_type not in ADJUSTMENT_TYPES:
            raise InvalidAdjustment(
                current_stock=item.current_stock,
                quantity_change=quantity_change,
                message=f"Unsupported adjustment type: {adjustment_type}",
            )
        if quantity_change == 0:
            raise InvalidAdjustment(
                current_stock=item.current_stock,
                quantity_change=quantity_change,
                message="Quantity change must be non-zero",
            )

        previous_stock = item.current_stock
        new_stock = previous_stock + quantity_change
        if new_stock < 0:
            STOCK_REJECTIONS_TOTAL.labels(reason="negative_stock").inc()
            _LOGGER.warning(
                "Rejected %s adjustment of %+d on %s/%s: stock is %d",
                adjustment_type,
                quantity_change,
                item.glass_type,
                item.unit_type,
                previous_stock,
            )
            raise InvalidAdjustment(current_stock=previous_stock, quantity_change=quantity_change)

        with _TRACER.start_as_current_span("stock.adjust") as span:
            span.set_attributes(
                {
                    "glassrental.glass_type": item.glass_type,
                    "glassrental.unit_type": item.unit_type,
                    "glassrental.adjustment_type": adjustment_type,
                    "glassrental.quantity_change": quantity_change,
                }
            )
            await self.repository.compare_and_set_stock(item, expected_version=item.version, new_stock=new_stock)
            entry = await self.repository.add_adjustment(
                item,
                adjustment_type=adjustment_type,
                quantity_change=quantity_change,
                previous_stock=previous_stock,
                reference_id=reference_id,
                reason=reason or f"{adjustment_type} adjustment",
            )
        STOCK_ADJUSTMENTS_TOTAL.labels(adjustment_type=adjustment_type).inc()
        _LOGGER.info(
            "Stock %s/%s %s %+d: %d -> %d",
            item.glass_type,
            item.unit_type,
            adjustment_type,
            quantity_change,
            previous_stock,
            new_stock,
        )
        return entry

    async def restock_item(
        self, glass_type: str, unit_type: str, quantity: int, reason: str | None = None
    ) -> StockAdjustment:
        return await self.adjust_stock(glass_type, unit_type, abs(quantity), "restock", reason)

    async def report_damage(
        self, glass_type: str, unit_type: str, quantity: int, reason: str | None = None
    ) -> StockAdjustment:
        return await self.adjust_stock(glass_type, unit_type, -abs(quantity), "damage", reason)

    @staticmethod
    def available_units(item: StockItem) -> int:
        """Units of ``item``'s grouping that can still be reserved.

        The pool of a glass type includes this row's own glasses, so the row's
        ``current_stock`` is always the tighter bound; an order never needs
        more than the pool once it fits in the row.
        """

        return max(item.current_stock, 0)

    async def reserve(self, item: StockItem, quantity: int, *, reference_id: str | None = None) -> StockAdjustment:
        available = self.available_units(item)
        if quantity > available:
            STOCK_REJECTIONS_TOTAL.labels(reason="insufficient_stock").inc()
            _LOGGER.warning(
                "Insufficient stock for %s/%s: requested %d, available %d",
                item.glass_type,
                item.unit_type,
                quantity,
                available,
            )
            raise InsufficientStock(glass_type=item.glass_type, requested=quantity, available=available)
        return await self.apply_adjustment(item, -quantity, "order", reference_id=reference_id)

    async def release(self, item: StockItem, quantity: int, *, reference_id: str | None = None) -> StockAdjustment:
        return await self.apply_adjustment(item, quantity, "return", reference_id=reference_id)
