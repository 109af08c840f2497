from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from glassrental.common import (
    DEFAULT_APP_NAME,
    ServiceSettings,
    build_app,
    configure_logging,
    create_schema,
    dispose_engines,
    get_session_factory,
    resolve_database_url,
)

from .api.customers import router as customers_router
from .api.glassware import router as glassware_router
from .api.health import router as health_router
from .api.orders import router as orders_router
from .api.reports import router as reports_router
from .api.stock import router as stock_router
from .models import Base

SERVICE_NAME = "Glass Rental Service"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./rental_service.db"


def create_app(settings: ServiceSettings | None = None) -> FastAPI:
    """Create the Glass Rental Service FastAPI application."""

    resolved_settings = settings or ServiceSettings()
    if resolved_settings.app_name == DEFAULT_APP_NAME:
        resolved_settings = resolved_settings.model_copy(update={"app_name": SERVICE_NAME})
    configure_logging(resolved_settings)
    database_url = resolve_database_url(resolved_settings, DEFAULT_DATABASE_URL)
    session_factory = get_session_factory(database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if resolved_settings.create_schema_on_startup:
            await create_schema(database_url, Base.metadata)
        app.state.session_factory = session_factory
        try:
            yield
        finally:
            await dispose_engines()

    app = build_app(resolved_settings, lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(customers_router)
    app.include_router(glassware_router)
    app.include_router(stock_router)
    app.include_router(orders_router)
    app.include_router(reports_router)
    return app


app = create_app()


def run(settings: ServiceSettings | None = None) -> None:
    """Serve the rental service with uvicorn on ``service_host``/``service_port``."""

    resolved_settings = settings or ServiceSettings()
    uvicorn.run(
        create_app(resolved_settings),
        host=resolved_settings.service_host,
        port=resolved_settings.service_port,
        log_level=resolved_settings.log_level.lower(),
        log_config=None,
    )
