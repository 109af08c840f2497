from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from glassrental.common import ServiceSettings
from glassrental.rental_service.app import main
from glassrental.rental_service.app.main import SERVICE_NAME, create_app


@pytest.mark.asyncio
async def test_health_endpoint_returns_ok(tmp_path) -> None:
    settings = ServiceSettings(
        enable_metrics=False,
        enable_tracing=False,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'health.db'}",
    )
    app = create_app(settings)
    assert app.title == SERVICE_NAME

    async with lifespan(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_run_serves_on_configured_host_and_port(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    settings = ServiceSettings(
        enable_metrics=False,
        enable_tracing=False,
        service_host="127.0.0.1",
        service_port=8181,
        log_level="INFO",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'serve.db'}",
    )

    main.run(settings)

    ((app, kwargs),) = calls
    assert isinstance(app, FastAPI)
    assert app.title == SERVICE_NAME
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 8181
    assert kwargs["log_level"] == "info"


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
