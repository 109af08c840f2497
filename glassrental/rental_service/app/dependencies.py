"""Dependency wiring for the rental service."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from glassrental.common import ServiceSettings, lifespan_session

from .reports import ReportService
from .repository import RentalRepository
from .services import CustomerService, GlasswareService, OrderService
from .stock import StockService


def get_settings(request: Request) -> ServiceSettings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an AsyncSession for the current request lifecycle."""

    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_repository(
    session: AsyncSession = Depends(get_session),
    settings: ServiceSettings = Depends(get_settings),
) -> RentalRepository:
    """Provide a repository bound to the active session."""

    return RentalRepository(session, timeout=settings.operation_timeout_seconds)


def get_stock_service(repository: RentalRepository = Depends(get_repository)) -> StockService:
    return StockService(repository)


def get_order_service(
    repository: RentalRepository = Depends(get_repository),
    stock: StockService = Depends(get_stock_service),
) -> OrderService:
    return OrderService(repository, stock)


def get_customer_service(
    repository: RentalRepository = Depends(get_repository),
    orders: OrderService = Depends(get_order_service),
) -> CustomerService:
    return CustomerService(repository, orders)


def get_glassware_service(
    repository: RentalRepository = Depends(get_repository),
    stock: StockService = Depends(get_stock_service),
    settings: ServiceSettings = Depends(get_settings),
) -> GlasswareService:
    return GlasswareService(
        repository,
        stock,
        default_low_stock_threshold=settings.default_low_stock_threshold,
    )


def get_report_service(repository: RentalRepository = Depends(get_repository)) -> ReportService:
    return ReportService(repository)
