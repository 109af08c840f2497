"""Stock accounting HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_stock_service
from ..errors import RentalError
from ..schemas import (
    AvailableGlassesResponse,
    OrderableStockResponse,
    StockAdjustmentRequest,
    StockAdjustmentResponse,
    StockAlertResponse,
    StockItemResponse,
    StockQuantityRequest,
)
from ..stock import StockService
from .errors import http_error

router = APIRouter(prefix="/stock", tags=["stock"])


@router.get("", response_model=list[StockItemResponse])
async def get_stock_overview(stock: StockService = Depends(get_stock_service)) -> list[StockItemResponse]:
    try:
        snapshots = await stock.get_stock_overview()
    except RentalError as exc:
        raise http_error(exc) from exc
    return [StockItemResponse.model_validate(snapshot) for snapshot in snapshots]


@router.get("/available/{glass_type}", response_model=AvailableGlassesResponse)
async def get_available_glasses(
    glass_type: str,
    stock: StockService = Depends(get_stock_service),
) -> AvailableGlassesResponse:
    try:
        available = await stock.get_available_glasses(glass_type)
    except RentalError as exc:
        raise http_error(exc) from exc
    return AvailableGlassesResponse(glass_type=glass_type, available_glasses=available)


@router.get("/for-orders", response_model=list[OrderableStockResponse])
async def get_stock_for_orders(stock: StockService = Depends(get_stock_service)) -> list[OrderableStockResponse]:
    try:
        entries = await stock.get_stock_for_orders()
    except RentalError as exc:
        raise http_error(exc) from exc
    return [OrderableStockResponse.model_validate(entry) for entry in entries]


@router.get("/alerts", response_model=list[StockAlertResponse])
async def get_stock_alerts(stock: StockService = Depends(get_stock_service)) -> list[StockAlertResponse]:
    try:
        alerts = await stock.get_active_stock_alerts()
    except RentalError as exc:
        raise http_error(exc) from exc
    return [StockAlertResponse.model_validate(alert) for alert in alerts]


@router.get("/adjustments", response_model=list[StockAdjustmentResponse])
async def get_stock_adjustments(
    stock_item_id: str | None = Query(default=None, alias="stockItemId"),
    stock: StockService = Depends(get_stock_service),
) -> list[StockAdjustmentResponse]:
    try:
        entries = await stock.get_stock_adjustments(stock_item_id)
    except RentalError as exc:
        raise http_error(exc) from exc
    return [StockAdjustmentResponse.model_validate(entry) for entry in entries]


@router.post("/adjust", response_model=StockAdjustmentResponse, status_code=status.HTTP_201_CREATED)
async def adjust_stock(
    payload: StockAdjustmentRequest,
    stock: StockService = Depends(get_stock_service),
) -> StockAdjustmentResponse:
    try:
        entry = await stock.adjust_stock(
            payload.glass_type,
            payload.unit_type,
            payload.quantity_change,
            payload.adjustment_type,
            payload.reason,
        )
    except RentalError as exc:
        raise http_error(exc) from exc
    return StockAdjustmentResponse.model_validate(entry)


@router.post("/restock", response_model=StockAdjustmentResponse, status_code=status.HTTP_201_CREATED)
async def restock_item(
    payload: StockQuantityRequest,
    stock: StockService = Depends(get_stock_service),
) -> StockAdjustmentResponse:
    try:
        entry = await stock.restock_item(payload.glass_type, payload.unit_type, payload.quantity, payload.reason)
    except RentalError as exc:
        raise http_error(exc) from exc
    return StockAdjustmentResponse.model_validate(entry)


@router.post("/damage", response_model=StockAdjustmentResponse, status_code=status.HTTP_201_CREATED)
async def report_damage(
    payload: StockQuantityRequest,
    stock: StockService = Depends(get_stock_service),
) -> StockAdjustmentResponse:
    try:
        entry = await stock.report_damage(payload.glass_type, payload.unit_type, payload.quantity, payload.reason)
    except RentalError as exc:
        raise http_error(exc) from exc
    return StockAdjustmentResponse.model_validate(entry)
