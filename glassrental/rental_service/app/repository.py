"""Data access helpers for the rental service."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

from sqlalchemy import Select, and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import ConcurrentModification, DuplicateKey, PersistenceFailure
from .models import Customer, Order, StockAdjustment, StockItem

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class RentalRepository:
    """Persistence helpers for customers, stock rows, adjustments and orders.

    Every storage call is bounded by ``timeout`` seconds. ``SQLAlchemyError`` is
    re-raised as :class:`PersistenceFailure` naming the step that failed, and
    unique-constraint violations surface as :class:`DuplicateKey`.
    """

    def __init__(self, session: AsyncSession, *, timeout: float | None = None) -> None:
        self.session = session
        self.timeout = timeout

    async def _guard(
        self,
        step: str,
        awaitable: Awaitable[T],
        *,
        duplicate: tuple[str, str, object] | None = None,
    ) -> T:
        try:
            return await asyncio.wait_for(awaitable, self.timeout)
        except asyncio.TimeoutError as exc:
            _LOGGER.error("Timed out after %ss while %s", self.timeout, step)
            raise PersistenceFailure(step, exc) from exc
        except IntegrityError as exc:
            if duplicate is not None:
                raise DuplicateKey(*duplicate) from exc
            raise PersistenceFailure(step, exc) from exc
        except SQLAlchemyError as exc:
            _LOGGER.error("Database error while %s: %s", step, exc)
            raise PersistenceFailure(step, exc) from exc

    async def _flush_and_refresh(self, instance: Any, attribute_names: list[str]) -> None:
        await self.session.flush()
        await self.session.refresh(instance, attribute_names=attribute_names)

    # Customers -------------------------------------------------------------------------------

    async def create_customer(self, fields: Mapping[str, Any]) -> Customer:
        customer = Customer(**fields)
        self.session.add(customer)
        await self._guard(
            "creating customer",
            self._flush_and_refresh(customer, ["created_at", "updated_at"]),
            duplicate=("Customer", "email", fields.get("email")),
        )
        return customer

    async def get_customer(self, customer_id: str) -> Customer | None:
        result = await self._guard(
            "loading customer",
            self.session.execute(select(Customer).where(Customer.id == customer_id)),
        )
        return result.scalar_one_or_none()

    async def get_customer_by_email(self, email: str) -> Customer | None:
        """Case-insensitive lookup; the stored address keeps its original casing."""

        statement = select(Customer).where(func.lower(Customer.email) == email.lower()).limit(1)
        result = await self._guard("looking up customer email", self.session.execute(statement))
        return result.scalar_one_or_none()

    async def list_customers(self) -> list[Customer]:
        result = await self._guard(
            "listing customers",
            self.session.execute(select(Customer).order_by(Customer.created_at.desc(), Customer.id.desc())),
        )
        return list(result.scalars())

    async def update_customer(self, customer: Customer, changes: Mapping[str, Any]) -> Customer:
        for field, value in changes.items():
            setattr(customer, field, value)
        await self._guard(
            "updating customer",
            self._flush_and_refresh(customer, ["updated_at"]),
            duplicate=("Customer", "email", changes.get("email")),
        )
        return customer

    async def delete_customer(self, customer: Customer) -> None:
        await self.session.delete(customer)
        await self._guard("deleting customer", self.session.flush())

    # Stock rows ------------------------------------------------------------------------------

    async def create_stock_item(self, fields: Mapping[str, Any]) -> StockItem:
        item = StockItem(**fields)
        self.session.add(item)
        await self._guard(
            "creating stock item",
            self._flush_and_refresh(item, ["created_at", "updated_at"]),
            duplicate=("Glassware", "type and unit type", f"{fields.get('glass_type')}/{fields.get('unit_type')}"),
        )
        return item

    async def get_stock_item(self, item_id: str) -> StockItem | None:
        result = await self._guard(
            "loading stock item",
            self.session.execute(select(StockItem).where(StockItem.id == item_id)),
        )
        return result.scalar_one_or_none()

    async def find_stock_item(self, glass_type: str, unit_type: str) -> StockItem | None:
        result = await self._guard(
            "looking up stock item",
            self.session.execute(
                select(StockItem).where(StockItem.glass_type == glass_type, StockItem.unit_type == unit_type)
            ),
        )
        return result.scalar_one_or_none()

    async def list_stock_items(
        self,
        *,
        glass_type: str | None = None,
        unit_type: str | None = None,
        newest_first: bool = False,
    ) -> list[StockItem]:
        stmt: Select[tuple[StockItem]] = select(StockItem)
        if glass_type is not None:
            stmt = stmt.where(StockItem.glass_type == glass_type)
        if unit_type is not None:
            stmt = stmt.where(StockItem.unit_type == unit_type)
        if newest_first:
            stmt = stmt.order_by(StockItem.created_at.desc(), StockItem.id.desc())
        else:
            stmt = stmt.order_by(StockItem.glass_type, StockItem.glasses_per_unit)
        result = await self._guard("listing stock items", self.session.execute(stmt))
        return list(result.scalars())

    async def update_stock_item(self, item: StockItem, changes: Mapping[str, Any]) -> StockItem:
        for field, value in changes.items():
            setattr(item, field, value)
        await self._guard(
            "updating stock item",
            self._flush_and_refresh(item, ["updated_at"]),
            duplicate=("Glassware", "type and unit type", f"{item.glass_type}/{item.unit_type}"),
        )
        return item

    async def compare_and_set_stock(self, item: StockItem, *, expected_version: int, new_stock: int) -> StockItem:
        """Write ``new_stock`` only if the row still carries ``expected_version``."""

        stmt = (
            update(StockItem)
            .where(StockItem.id == item.id, StockItem.version == expected_version)
            .values(current_stock=new_stock, version=expected_version + 1, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await self._guard("updating stock level", self.session.execute(stmt))
        if result.rowcount != 1:
            raise ConcurrentModification("Stock item", item.id)
        await self._guard("reloading stock item", self.session.refresh(item))
        return item

    async def pool_glasses(self, glass_type: str) -> int:
        stmt = select(
            func.coalesce(func.sum(StockItem.current_stock * StockItem.glasses_per_unit), 0)
        ).where(StockItem.glass_type == glass_type)
        result = await self._guard("computing available glasses", self.session.execute(stmt))
        return int(result.scalar_one())

    async def pool_glasses_by_type(self) -> dict[str, int]:
        stmt = select(
            StockItem.glass_type,
            func.sum(StockItem.current_stock * StockItem.glasses_per_unit),
        ).group_by(StockItem.glass_type)
        result = await self._guard("computing available glasses", self.session.execute(stmt))
        return {glass_type: int(total or 0) for glass_type, total in result.all()}

    async def delete_stock_item(self, item: StockItem) -> None:
        await self.session.delete(item)
        await self._guard("deleting stock item", self.session.flush())

    # Adjustments -----------------------------------------------------------------------------

    async def add_adjustment(
        self,
        item: StockItem,
        *,
        adjustment_type: str,
        quantity_change: int,
        previous_stock: int,
        reference_id: str | None,
        reason: str | None,
    ) -> StockAdjustment:
        entry = StockAdjustment(
            stock_item_id=item.id,
            glass_type=item.glass_type,
            unit_type=item.unit_type,
            adjustment_type=adjustment_type,
            quantity_change=quantity_change,
            previous_stock=previous_stock,
            new_stock=previous_stock + quantity_change,
            reference_id=reference_id,
            reason=reason,
        )
        self.session.add(entry)
        await self._guard("recording stock adjustment", self._flush_and_refresh(entry, ["created_at"]))
        return entry

    async def list_adjustments(self, *, stock_item_id: str | None = None) -> list[StockAdjustment]:
        stmt: Select[tuple[StockAdjustment]] = select(StockAdjustment)
        if stock_item_id is not None:
            stmt = stmt.where(StockAdjustment.stock_item_id == stock_item_id)
        stmt = stmt.order_by(StockAdjustment.created_at.desc(), StockAdjustment.id.desc())
        result = await self._guard("listing stock adjustments", self.session.execute(stmt))
        return list(result.scalars())

    # Orders ----------------------------------------------------------------------------------

    async def create_order(self, fields: Mapping[str, Any]) -> Order:
        order = Order(**fields)
        self.session.add(order)
        await self._guard("creating order", self._flush_and_refresh(order, ["created_at", "updated_at"]))
        return order

    async def get_order(self, order_id: str) -> Order | None:
        result = await self._guard(
            "loading order",
            self.session.execute(select(Order).where(Order.id == order_id)),
        )
        return result.scalar_one_or_none()

    async def list_orders(
        self,
        *,
        customer_id: str | None = None,
        stock_item_id: str | None = None,
        status: str | None = None,
    ) -> list[Order]:
        filters = []
        if customer_id is not None:
            filters.append(Order.customer_id == customer_id)
        if stock_item_id is not None:
            filters.append(Order.stock_item_id == stock_item_id)
        if status is not None:
            filters.append(Order.status == status)

        stmt: Select[tuple[Order]] = select(Order)
        if filters:
            stmt = stmt.where(and_(*filters))
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
        result = await self._guard("listing orders", self.session.execute(stmt))
        return list(result.scalars())

    async def update_order(self, order: Order, changes: Mapping[str, Any]) -> Order:
        for field, value in changes.items():
            setattr(order, field, value)
        await self._guard("updating order", self._flush_and_refresh(order, ["updated_at"]))
        return order

    async def delete_order(self, order: Order) -> None:
        await self.session.delete(order)
        await self._guard("deleting order", self.session.flush())

    async def delete_orders_for_stock_item(self, stock_item_id: str) -> int:
        result = await self._guard(
            "deleting orders for glassware",
            self.session.execute(
                delete(Order)
                .where(Order.stock_item_id == stock_item_id)
                .execution_options(synchronize_session="fetch")
            ),
        )
        return result.rowcount or 0
