import asyncio
import csv
import io
from contextlib import asynccontextmanager

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from glassrental.common import ServiceSettings
from glassrental.rental_service.app.main import create_app
from glassrental.rental_service.app.reports import CUSTOMER_COLUMNS, ORDER_COLUMNS, render_csv


def _run(coro):
    return asyncio.run(coro)


def _prepare_app(tmp_path) -> FastAPI:
    settings = ServiceSettings(
        app_name="Rental Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'reports.db'}",
    )
    return create_app(settings)


async def _seed(client: AsyncClient) -> None:
    customer = (
        await client.post(
            "/customers",
            json={
                "name": "Uwase, Alice",
                "email": "alice@example.com",
                "phone": "+250788000001",
                "eventDate": "2026-12-05",
                "eventLocation": 'The "Grand" Hall',
                "eventType": "Wedding",
            },
        )
    ).json()
    wine = (
        await client.post("/glassware", json={"type": "Wine Glass", "quantityAvailable": 50, "pricePerUnit": 500})
    ).json()
    await client.post(
        "/glassware",
        json={"type": "Wine Glass", "unitType": "small_box", "quantityAvailable": 2, "pricePerUnit": 2500},
    )
    for quantity, status in ((10, "pending"), (4, "confirmed")):
        response = await client.post(
            "/orders",
            json={
                "customerId": customer["id"],
                "glasswareId": wine["id"],
                "quantity": quantity,
                "orderDate": "2026-11-01",
                "deliveryDate": "2026-12-04",
                "status": status,
            },
        )
        assert response.status_code == 201


def test_render_csv_quotes_special_values() -> None:
    content = render_csv(("Name", "Note"), [("Alice", 'says "hi", twice'), ("Bob", 3)])
    assert content.splitlines() == ["Name,Note", 'Alice,"says ""hi"", twice"', "Bob,3"]


def test_dashboard_stats(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                empty = await client.get("/reports/dashboard")
                assert empty.status_code == 200
                assert empty.json() == {
                    "totalCustomers": 0,
                    "totalOrders": 0,
                    "totalGlassware": 0,
                    "pendingOrders": 0,
                    "totalRevenue": 0,
                    "totalInventoryValue": 0,
                }

                await _seed(client)
                stats = (await client.get("/reports/dashboard")).json()
                assert stats["totalCustomers"] == 1
                assert stats["totalOrders"] == 2
                assert stats["totalGlassware"] == 38
                assert stats["pendingOrders"] == 1
                assert stats["totalRevenue"] == 7000
                assert stats["totalInventoryValue"] == 36 * 500 + 2 * 2500

    _run(body())


def test_csv_exports(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await _seed(client)

                customers = await client.get("/reports/customers.csv")
                assert customers.status_code == 200
                assert customers.headers["content-type"].startswith("text/csv")
                assert 'filename="customers-report.csv"' in customers.headers["content-disposition"]
                rows = list(csv.reader(io.StringIO(customers.text)))
                assert tuple(rows[0]) == CUSTOMER_COLUMNS
                assert rows[1][0] == "Uwase, Alice"
                assert rows[1][5] == 'The "Grand" Hall'
                assert rows[1][4] == "2026-12-05"

                inventory = await client.get("/reports/inventory.csv")
                inventory_rows = list(csv.reader(io.StringIO(inventory.text)))
                assert len(inventory_rows) == 3
                totals = {(row[0], row[1]): int(row[5]) for row in inventory_rows[1:]}
                assert totals == {("Wine Glass", "individual"): 18000, ("Wine Glass", "small_box"): 5000}

                orders = await client.get("/reports/orders.csv")
                order_rows = list(csv.reader(io.StringIO(orders.text)))
                assert tuple(order_rows[0]) == ORDER_COLUMNS
                assert sorted(row[6] for row in order_rows[1:]) == ["confirmed", "pending"]
                assert sorted(int(row[7]) for row in order_rows[1:]) == [2000, 5000]

    _run(body())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
