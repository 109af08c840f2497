import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from glassrental.common import ServiceSettings
from glassrental.rental_service.app.main import create_app


def _run(coro):
    return asyncio.run(coro)


def _prepare_app(tmp_path) -> FastAPI:
    settings = ServiceSettings(
        app_name="Rental Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'stock.db'}",
    )
    return create_app(settings)


async def _create_glassware(client: AsyncClient, glass_type: str, unit_type: str, quantity: int, **extra) -> dict:
    response = await client.post(
        "/glassware",
        json={
            "type": glass_type,
            "unitType": unit_type,
            "quantityAvailable": quantity,
            "pricePerUnit": 500,
            **extra,
        },
    )
    assert response.status_code == 201
    return response.json()


def test_damage_restock_and_adjust(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                beer = await _create_glassware(client, "Beer Glass", "individual", 240)
                key = {"glassType": "Beer Glass", "unitType": "individual"}

                damage = await client.post("/stock/damage", json={**key, "quantity": 5, "reason": "broken at event"})
                assert damage.status_code == 201
                entry = damage.json()
                assert entry["adjustmentType"] == "damage"
                assert entry["quantityChange"] == -5
                assert entry["previousStock"] == 240
                assert entry["newStock"] == 235
                assert entry["reason"] == "broken at event"

                restock = await client.post("/stock/restock", json={**key, "quantity": 15})
                assert restock.status_code == 201
                assert restock.json()["newStock"] == 250
                assert restock.json()["reason"] == "restock adjustment"

                manual = await client.post(
                    "/stock/adjust",
                    json={**key, "quantityChange": -10, "adjustmentType": "manual", "reason": "stock count"},
                )
                assert manual.status_code == 201
                assert manual.json()["newStock"] == 240

                audit = (await client.get("/stock/adjustments", params={"stockItemId": beer["id"]})).json()
                assert [row["adjustmentType"] for row in audit] == ["manual", "restock", "damage", "restock"]

                glassware = (await client.get(f"/glassware/{beer['id']}")).json()
                assert glassware["quantityAvailable"] == 240

    _run(body())


def test_rejected_adjustments_leave_stock_unchanged(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                beer = await _create_glassware(client, "Beer Glass", "individual", 20)
                key = {"glassType": "Beer Glass", "unitType": "individual"}

                too_much = await client.post("/stock/damage", json={**key, "quantity": 21})
                assert too_much.status_code == 400
                assert "below zero" in too_much.json()["detail"]

                zero = await client.post(
                    "/stock/adjust", json={**key, "quantityChange": 0, "adjustmentType": "manual"}
                )
                assert zero.status_code == 422

                order_type = await client.post(
                    "/stock/adjust", json={**key, "quantityChange": -1, "adjustmentType": "order"}
                )
                assert order_type.status_code == 422

                unknown = await client.post(
                    "/stock/restock", json={"glassType": "Tumbler", "unitType": "individual", "quantity": 1}
                )
                assert unknown.status_code == 404

                glassware = (await client.get(f"/glassware/{beer['id']}")).json()
                assert glassware["quantityAvailable"] == 20
                audit = (await client.get("/stock/adjustments", params={"stockItemId": beer["id"]})).json()
                assert len(audit) == 1

    _run(body())


def test_overview_reports_shared_pool(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await _create_glassware(client, "Wine Glass", "individual", 50)
                await _create_glassware(client, "Wine Glass", "small_box", 3)
                await _create_glassware(client, "Wine Glass", "large_box", 0)
                await _create_glassware(client, "Tumbler", "individual", 8, lowStockThreshold=10)

                available = await client.get("/stock/available/Wine Glass")
                assert available.status_code == 200
                assert available.json() == {"glassType": "Wine Glass", "availableGlasses": 68}

                unknown = await client.get("/stock/available/Goblet")
                assert unknown.json()["availableGlasses"] == 0

                overview = (await client.get("/stock")).json()
                rows = {(row["glassType"], row["unitType"]): row for row in overview}
                assert len(rows) == 4
                small_box = rows[("Wine Glass", "small_box")]
                assert small_box["glassesPerUnit"] == 6
                assert small_box["totalGlassesForUnitType"] == 18
                assert small_box["stockStatus"] == "low_stock"
                assert {row["totalAvailableGlasses"] for (glass, _), row in rows.items() if glass == "Wine Glass"} == {68}
                assert rows[("Wine Glass", "individual")]["stockStatus"] == "in_stock"
                assert rows[("Wine Glass", "large_box")]["stockStatus"] == "out_of_stock"

                for_orders = (await client.get("/stock/for-orders")).json()
                assert {(row["glassType"], row["availableGlasses"]) for row in for_orders} == {
                    ("Tumbler", 8),
                    ("Wine Glass", 50),
                }

                alerts = (await client.get("/stock/alerts")).json()
                assert {(row["glassType"], row["unitType"], row["alertType"]) for row in alerts} == {
                    ("Wine Glass", "small_box", "low_stock"),
                    ("Wine Glass", "large_box", "out_of_stock"),
                    ("Tumbler", "individual", "low_stock"),
                }

    _run(body())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
