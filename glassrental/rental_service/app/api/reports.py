"""Dashboard and CSV report endpoints."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, Response

from ..dependencies import get_report_service
from ..errors import RentalError
from ..reports import ReportService
from ..schemas import DashboardStatsResponse
from .errors import http_error

router = APIRouter(prefix="/reports", tags=["reports"])


async def _csv_response(render: Callable[[], Awaitable[str]], filename: str) -> Response:
    try:
        content = await render()
    except RentalError as exc:
        raise http_error(exc) from exc
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard_stats(reports: ReportService = Depends(get_report_service)) -> DashboardStatsResponse:
    try:
        stats = await reports.dashboard_stats()
    except RentalError as exc:
        raise http_error(exc) from exc
    return DashboardStatsResponse.model_validate(stats)


@router.get("/customers.csv")
async def export_customers(reports: ReportService = Depends(get_report_service)) -> Response:
    return await _csv_response(reports.customers_csv, "customers-report.csv")


@router.get("/inventory.csv")
async def export_inventory(reports: ReportService = Depends(get_report_service)) -> Response:
    return await _csv_response(reports.inventory_csv, "inventory-report.csv")


@router.get("/orders.csv")
async def export_orders(reports: ReportService = Depends(get_report_service)) -> Response:
    return await _csv_response(reports.orders_csv, "orders-report.csv")
