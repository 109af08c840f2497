"""Dashboard statistics and CSV exports."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .repository import RentalRepository

CUSTOMER_COLUMNS = ("Name", "Email", "Phone", "Event Type", "Event Date", "Event Location", "Created At")
INVENTORY_COLUMNS = (
    "Type",
    "Unit Type",
    "Description",
    "Quantity Available",
    "Price per Unit",
    "Total Value",
    "Created At",
)
ORDER_COLUMNS = (
    "Order ID",
    "Customer Name",
    "Glassware Type",
    "Quantity",
    "Order Date",
    "Delivery Date",
    "Status",
    "Total Amount",
    "Created At",
)


@dataclass
class DashboardStats:
    total_customers: int
    total_orders: int
    total_glassware: int
    pending_orders: int
    total_revenue: int
    total_inventory_value: int


def render_csv(columns: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(columns)
    writer.writerows(rows)
    return buffer.getvalue()


class ReportService:
    def __init__(self, repository: RentalRepository) -> None:
        self.repository = repository

    async def dashboard_stats(self) -> DashboardStats:
        customers = await self.repository.list_customers()
        orders = await self.repository.list_orders()
        items = await self.repository.list_stock_items()
        return DashboardStats(
            total_customers=len(customers),
            total_orders=len(orders),
            total_glassware=sum(item.current_stock for item in items),
            pending_orders=sum(1 for order in orders if order.status == "pending"),
            total_revenue=sum(order.total_amount for order in orders),
            total_inventory_value=sum(item.current_stock * item.price_per_unit for item in items),
        )

    async def customers_csv(self) -> str:
        customers = await self.repository.list_customers()
        return render_csv(
            CUSTOMER_COLUMNS,
            (
                (
                    customer.name,
                    customer.email,
                    customer.phone,
                    customer.event_type,
                    customer.event_date.isoformat(),
                    customer.event_location,
                    customer.created_at.date().isoformat(),
                )
                for customer in customers
            ),
        )

    async def inventory_csv(self) -> str:
        items = await self.repository.list_stock_items(newest_first=True)
        return render_csv(
            INVENTORY_COLUMNS,
            (
                (
                    item.glass_type,
                    item.unit_type,
                    item.description,
                    item.current_stock,
                    item.price_per_unit,
                    item.current_stock * item.price_per_unit,
                    item.created_at.date().isoformat(),
                )
                for item in items
            ),
        )

    async def orders_csv(self) -> str:
        orders = await self.repository.list_orders()
        return render_csv(
            ORDER_COLUMNS,
            (
                (
                    order.id,
                    order.customer_name,
                    order.glassware_type,
                    order.quantity,
                    order.order_date.isoformat(),
                    order.delivery_date.isoformat(),
                    order.status,
                    order.total_amount,
                    order.created_at.date().isoformat(),
                )
                for order in orders
            ),
        )
