import asyncio
from contextlib import asynccontextmanager
from typing import Any

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
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
    )
    return create_app(settings)


async def _create_customer(client: AsyncClient, email: str = "alice@example.com", name: str = "Alice Uwase") -> dict:
    response = await client.post(
        "/customers",
        json={
            "name": name,
            "email": email,
            "phone": "+250788000001",
            "eventDate": "2026-12-05",
            "eventLocation": "Kigali",
            "eventType": "Wedding",
        },
    )
    assert response.status_code == 201
    return response.json()


async def _create_glassware(client: AsyncClient, glass_type: str = "Wine Glass", quantity: int = 50) -> dict:
    response = await client.post(
        "/glassware",
        json={"type": glass_type, "quantityAvailable": quantity, "pricePerUnit": 500},
    )
    assert response.status_code == 201
    return response.json()


async def _available(client: AsyncClient, glass_type: str = "Wine Glass") -> int:
    response = await client.get(f"/stock/available/{glass_type}")
    return response.json()["availableGlasses"]


def _order_payload(customer_id: str, glassware_id: str, **overrides: Any) -> dict[str, Any]:
    payload = {
        "customerId": customer_id,
        "glasswareId": glassware_id,
        "quantity": 10,
        "orderDate": "2026-11-01",
        "deliveryDate": "2026-12-04",
    }
    payload.update(overrides)
    return payload


def test_create_and_list_orders(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                customer = await _create_customer(client)
                wine = await _create_glassware(client)

                create_resp = await client.post("/orders", json=_order_payload(customer["id"], wine["id"]))
                assert create_resp.status_code == 201
                created = create_resp.json()
                assert created["customerName"] == "Alice Uwase"
                assert created["glasswareType"] == "Wine Glass"
                assert created["totalAmount"] == 5000
                assert created["status"] == "pending"
                assert created["deliveryDate"] == "2026-12-04"
                assert await _available(client) == 40

                confirmed = await client.post(
                    "/orders", json=_order_payload(customer["id"], wine["id"], quantity=2, status="confirmed")
                )
                assert confirmed.status_code == 201

                listed = (await client.get("/orders")).json()
                assert [order["id"] for order in listed] == [confirmed.json()["id"], created["id"]]

                pending = (await client.get("/orders", params={"status": "pending"})).json()
                assert [order["id"] for order in pending] == [created["id"]]

                by_customer = (await client.get("/orders", params={"customerId": customer["id"]})).json()
                assert len(by_customer) == 2

                fetched = await client.get(f"/orders/{created['id']}")
                assert fetched.status_code == 200
                assert fetched.json()["quantity"] == 10

    _run(body())


def test_insufficient_stock_and_missing_references(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                customer = await _create_customer(client)
                wine = await _create_glassware(client, quantity=40)

                too_many = await client.post("/orders", json=_order_payload(customer["id"], wine["id"], quantity=41))
                assert too_many.status_code == 409
                detail = too_many.json()["detail"]
                assert "requested 41" in detail
                assert "only 40 available" in detail

                missing_customer = await client.post("/orders", json=_order_payload("missing", wine["id"]))
                assert missing_customer.status_code == 404
                missing_glassware = await client.post("/orders", json=_order_payload(customer["id"], "missing"))
                assert missing_glassware.status_code == 404

                zero = await client.post("/orders", json=_order_payload(customer["id"], wine["id"], quantity=0))
                assert zero.status_code == 422

                assert await _available(client) == 40
                assert (await client.get("/orders")).json() == []

                audit = (await client.get("/stock/adjustments", params={"stockItemId": wine["id"]})).json()
                assert [entry["adjustmentType"] for entry in audit] == ["restock"]

    _run(body())


def test_update_quantity_moves_stock_by_delta(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                customer = await _create_customer(client)
                wine = await _create_glassware(client)
                order = (await client.post("/orders", json=_order_payload(customer["id"], wine["id"]))).json()

                grow = await client.patch(f"/orders/{order['id']}", json={"quantity": 15})
                assert grow.status_code == 200
                assert grow.json()["totalAmount"] == 7500
                assert await _available(client) == 35

                shrink = await client.patch(f"/orders/{order['id']}", json={"quantity": 5})
                assert shrink.status_code == 200
                assert shrink.json()["totalAmount"] == 2500
                assert await _available(client) == 45

                too_many = await client.patch(f"/orders/{order['id']}", json={"quantity": 100})
                assert too_many.status_code == 409
                assert await _available(client) == 45
                assert (await client.get(f"/orders/{order['id']}")).json()["quantity"] == 5

                status_only = await client.patch(f"/orders/{order['id']}", json={"status": "cancelled"})
                assert status_only.status_code == 200
                assert status_only.json()["status"] == "cancelled"
                reopened = await client.patch(f"/orders/{order['id']}", json={"status": "pending"})
                assert reopened.json()["status"] == "pending"
                assert await _available(client) == 45

                audit = (await client.get("/stock/adjustments", params={"stockItemId": wine["id"]})).json()
                assert [(entry["adjustmentType"], entry["quantityChange"]) for entry in audit] == [
                    ("return", 10),
                    ("order", -5),
                    ("order", -10),
                    ("restock", 50),
                ]

    _run(body())


def test_update_reassigns_glassware_and_customer(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                alice = await _create_customer(client)
                bob = await _create_customer(client, email="bob@example.com", name="Bob Mugisha")
                wine = await _create_glassware(client)
                flute = await _create_glassware(client, glass_type="Champagne Flute", quantity=30)
                order = (await client.post("/orders", json=_order_payload(alice["id"], wine["id"]))).json()

                moved = await client.patch(
                    f"/orders/{order['id']}",
                    json={"glasswareId": flute["id"], "customerId": bob["id"], "quantity": 12},
                )
                assert moved.status_code == 200
                body = moved.json()
                assert body["glasswareId"] == flute["id"]
                assert body["glasswareType"] == "Champagne Flute"
                assert body["customerName"] == "Bob Mugisha"
                assert body["totalAmount"] == 6000
                assert await _available(client, "Wine Glass") == 50
                assert await _available(client, "Champagne Flute") == 18

                too_many = await client.patch(
                    f"/orders/{order['id']}", json={"glasswareId": wine["id"], "quantity": 51}
                )
                assert too_many.status_code == 409
                assert await _available(client, "Champagne Flute") == 18

    _run(body())


def test_delete_restores_stock_once(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                customer = await _create_customer(client)
                wine = await _create_glassware(client)
                order = (await client.post("/orders", json=_order_payload(customer["id"], wine["id"]))).json()
                assert await _available(client) == 40

                delete_resp = await client.delete(f"/orders/{order['id']}")
                assert delete_resp.status_code == 204
                assert await _available(client) == 50

                again = await client.delete(f"/orders/{order['id']}")
                assert again.status_code == 404
                assert await _available(client) == 50

                missing = await client.get(f"/orders/{order['id']}")
                assert missing.status_code == 404

    _run(body())


def test_customer_delete_cascades_and_returns_stock(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                alice = await _create_customer(client)
                bob = await _create_customer(client, email="bob@example.com", name="Bob Mugisha")
                wine = await _create_glassware(client)
                alice_order = (
                    await client.post("/orders", json=_order_payload(alice["id"], wine["id"], quantity=7))
                ).json()
                bob_order = (await client.post("/orders", json=_order_payload(bob["id"], wine["id"], quantity=3))).json()
                assert await _available(client) == 40

                delete_resp = await client.delete(f"/customers/{alice['id']}")
                assert delete_resp.status_code == 204

                remaining = (await client.get("/orders")).json()
                assert [order["id"] for order in remaining] == [bob_order["id"]]
                assert await _available(client) == 47

                audit = (await client.get("/stock/adjustments", params={"stockItemId": wine["id"]})).json()
                assert audit[0]["adjustmentType"] == "return"
                assert audit[0]["referenceId"] == alice_order["id"]

    _run(body())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
