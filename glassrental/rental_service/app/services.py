"""Domain services for customers, the glassware catalog and the order lifecycle.

Services never commit. They expect to run inside one session transaction
(``lifespan_session`` per request), so an order write, its stock movement and
the audit record either all become visible or none do.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from .errors import DuplicateKey, InsufficientStock, NotFound
from .metrics import ORDERS_TOTAL
from .models import Customer, Order, StockItem
from .repository import RentalRepository
from .schemas import CustomerCreate, CustomerUpdate, GlasswareCreate, GlasswareUpdate, OrderCreate, OrderUpdate
from .stock import StockService, glasses_per_unit

_LOGGER = logging.getLogger(__name__)


def _changes(payload: CustomerUpdate | GlasswareUpdate | OrderUpdate) -> dict[str, Any]:
    return payload.model_dump(exclude_unset=True, exclude_none=True)


class OrderService:
    """Creates, updates and deletes orders while keeping stock consistent."""

    def __init__(self, repository: RentalRepository, stock: StockService) -> None:
        self.repository = repository
        self.stock = stock

    async def list_orders(self, *, customer_id: str | None = None, status: str | None = None) -> list[Order]:
        return await self.repository.list_orders(customer_id=customer_id, status=status)

    async def get_order(self, order_id: str) -> Order:
        order = await self.repository.get_order(order_id)
        if order is None:
            raise NotFound("Order", order_id)
        return order

    async def _require_customer(self, customer_id: str) -> Customer:
        customer = await self.repository.get_customer(customer_id)
        if customer is None:
            raise NotFound("Customer", customer_id)
        return customer

    async def _require_glassware(self, glassware_id: str) -> StockItem:
        item = await self.repository.get_stock_item(glassware_id)
        if item is None:
            raise NotFound("Glassware", glassware_id)
        return item

    async def create_order(self, payload: OrderCreate) -> Order:
        customer = await self._require_customer(payload.customer_id)
        item = await self._require_glassware(payload.glassware_id)

        # The reservation validates availability before touching stock; the
        # order row is written afterwards in the same transaction.
        order_id = str(uuid.uuid4())
        await self.stock.reserve(item, payload.quantity, reference_id=order_id)
        order = await self.repository.create_order(
            {
                "id": order_id,
                "customer_id": customer.id,
                "stock_item_id": item.id,
                "customer_name": customer.name,
                "glassware_type": item.glass_type,
                "quantity": payload.quantity,
                "price_per_unit": item.price_per_unit,
                "total_amount": item.price_per_unit * payload.quantity,
                "order_date": payload.order_date,
                "delivery_date": payload.delivery_date,
                "status": payload.status,
            }
        )
        ORDERS_TOTAL.labels(operation="create").inc()
        _LOGGER.info(
            "Created order %s for customer %s: %d x %s (%s)",
            order.id,
            customer.id,
            order.quantity,
            item.glass_type,
            item.unit_type,
        )
        return order

    async def update_order(self, order_id: str, payload: OrderUpdate) -> Order:
        order = await self.get_order(order_id)
        changes = _changes(payload)

        new_customer_id = changes.pop("customer_id", order.customer_id)
        new_glassware_id = changes.pop("glassware_id", order.stock_item_id)
        new_quantity = changes.pop("quantity", order.quantity)

        # Resolve and validate everything before any stock moves.
        if new_customer_id != order.customer_id:
            customer = await self._require_customer(new_customer_id)
            changes["customer_id"] = customer.id
            changes["customer_name"] = customer.name

        current_item = await self._require_glassware(order.stock_item_id)
        target_item = current_item
        if new_glassware_id != order.stock_item_id:
            target_item = await self._require_glassware(new_glassware_id)
            available = self.stock.available_units(target_item)
            if new_quantity > available:
                raise InsufficientStock(
                    glass_type=target_item.glass_type, requested=new_quantity, available=available
                )

        if target_item is not current_item:
            await self.stock.release(current_item, order.quantity, reference_id=order.id)
            await self.stock.reserve(target_item, new_quantity, reference_id=order.id)
            changes["stock_item_id"] = target_item.id
            changes["glassware_type"] = target_item.glass_type
        elif new_quantity != order.quantity:
            delta = order.quantity - new_quantity
            if delta > 0:
                await self.stock.release(current_item, delta, reference_id=order.id)
            else:
                await self.stock.reserve(current_item, -delta, reference_id=order.id)

        if target_item is not current_item or new_quantity != order.quantity:
            changes["quantity"] = new_quantity
            changes["price_per_unit"] = target_item.price_per_unit
            changes["total_amount"] = target_item.price_per_unit * new_quantity

        if changes:
            order = await self.repository.update_order(order, changes)
        ORDERS_TOTAL.labels(operation="update").inc()
        _LOGGER.info("Updated order %s (%s)", order.id, ", ".join(sorted(changes)) or "no changes")
        return order

    async def delete_order(self, order_id: str) -> None:
        order = await self.get_order(order_id)
        await self.remove_order(order)

    async def remove_order(self, order: Order) -> None:
        """Return ``order``'s quantity to its stock row, then delete the order."""

        item = await self.repository.get_stock_item(order.stock_item_id)
        if item is not None:
            await self.stock.release(item, order.quantity, reference_id=order.id)
        await self.repository.delete_order(order)
        ORDERS_TOTAL.labels(operation="delete").inc()
        _LOGGER.info("Deleted order %s, returned %d to stock", order.id, order.quantity)


class CustomerService:
    def __init__(self, repository: RentalRepository, orders: OrderService) -> None:
        self.repository = repository
        self.orders = orders

    async def list_customers(self) -> list[Customer]:
        return await self.repository.list_customers()

    async def get_customer(self, customer_id: str) -> Customer:
        customer = await self.repository.get_customer(customer_id)
        if customer is None:
            raise NotFound("Customer", customer_id)
        return customer

    async def create_customer(self, payload: CustomerCreate) -> Customer:
        if await self.repository.get_customer_by_email(payload.email) is not None:
            raise DuplicateKey("Customer", "email", payload.email)
        customer = await self.repository.create_customer(payload.model_dump())
        _LOGGER.info("Created customer %s", customer.id)
        return customer

    async def update_customer(self, customer_id: str, payload: CustomerUpdate) -> Customer:
        customer = await self.get_customer(customer_id)
        changes = _changes(payload)
        email = changes.get("email")
        if email is not None and email != customer.email:
            existing = await self.repository.get_customer_by_email(email)
            if existing is not None and existing.id != customer.id:
                raise DuplicateKey("Customer", "email", email)
        if not changes:
            return customer
        return await self.repository.update_customer(customer, changes)

    async def delete_customer(self, customer_id: str) -> int:
        """Delete a customer and every order that references it; returns the order count."""

        customer = await self.get_customer(customer_id)
        orders = await self.repository.list_orders(customer_id=customer.id)
        for order in orders:
            await self.orders.remove_order(order)
        await self.repository.delete_customer(customer)
        _LOGGER.info("Deleted customer %s and %d orders", customer_id, len(orders))
        return len(orders)


class GlasswareService:
    """Catalog operations over the stock rows; quantity changes always go through stock accounting."""

    def __init__(
        self,
        repository: RentalRepository,
        stock: StockService,
        *,
        default_low_stock_threshold: int = 10,
    ) -> None:
        self.repository = repository
        self.stock = stock
        self.default_low_stock_threshold = default_low_stock_threshold

    async def list_glassware(self) -> list[StockItem]:
        return await self.repository.list_stock_items(newest_first=True)

    async def get_glassware(self, glassware_id: str) -> StockItem:
        item = await self.repository.get_stock_item(glassware_id)
        if item is None:
            raise NotFound("Glassware", glassware_id)
        return item

    async def create_glassware(self, payload: GlasswareCreate) -> StockItem:
        if await self.repository.find_stock_item(payload.type, payload.unit_type) is not None:
            raise DuplicateKey("Glassware", "type and unit type", f"{payload.type}/{payload.unit_type}")

        threshold = payload.low_stock_threshold
        item = await self.repository.create_stock_item(
            {
                "glass_type": payload.type,
                "unit_type": payload.unit_type,
                "glasses_per_unit": glasses_per_unit(payload.unit_type),
                "description": payload.description,
                "price_per_unit": payload.price_per_unit,
                "current_stock": 0,
                "low_stock_threshold": self.default_low_stock_threshold if threshold is None else threshold,
            }
        )
        if payload.quantity_available:
            await self.stock.apply_adjustment(
                item, payload.quantity_available, "restock", reason="initial stock"
            )
        _LOGGER.info("Created glassware %s (%s/%s)", item.id, item.glass_type, item.unit_type)
        return item

    async def update_glassware(self, glassware_id: str, payload: GlasswareUpdate) -> StockItem:
        item = await self.get_glassware(glassware_id)
        changes = _changes(payload)

        quantity = changes.pop("quantity_available", None)
        glass_type = changes.pop("type", None)
        if glass_type is not None and glass_type != item.glass_type:
            if await self.repository.find_stock_item(glass_type, item.unit_type) is not None:
                raise DuplicateKey("Glassware", "type and unit type", f"{glass_type}/{item.unit_type}")
            changes["glass_type"] = glass_type

        if changes:
            item = await self.repository.update_stock_item(item, changes)
        if quantity is not None and quantity != item.current_stock:
            await self.stock.apply_adjustment(
                item, quantity - item.current_stock, "manual", reason="catalog quantity update"
            )
        return item

    async def delete_glassware(self, glassware_id: str) -> int:
        """Delete a catalog row and every order that references it; returns the order count."""

        item = await self.get_glassware(glassware_id)
        removed = await self.repository.delete_orders_for_stock_item(item.id)
        await self.repository.delete_stock_item(item)
        _LOGGER.info("Deleted glassware %s and %d orders", glassware_id, removed)
        return removed
