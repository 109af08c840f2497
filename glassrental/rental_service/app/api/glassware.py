"""Glassware catalog HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_glassware_service
from ..errors import RentalError
from ..models import StockItem
from ..schemas import GlasswareCreate, GlasswareResponse, GlasswareUpdate
from ..services import GlasswareService
from .errors import http_error

router = APIRouter(prefix="/glassware", tags=["glassware"])


def _serialize_glassware(item: StockItem) -> dict[str, object]:
    return {
        "id": item.id,
        "type": item.glass_type,
        "unitType": item.unit_type,
        "description": item.description,
        "quantityAvailable": item.current_stock,
        "pricePerUnit": item.price_per_unit,
        "lowStockThreshold": item.low_stock_threshold,
        "createdAt": item.created_at,
    }


@router.get("", response_model=list[GlasswareResponse])
async def list_glassware(service: GlasswareService = Depends(get_glassware_service)) -> list[GlasswareResponse]:
    try:
        items = await service.list_glassware()
    except RentalError as exc:
        raise http_error(exc) from exc
    return [GlasswareResponse.model_validate(_serialize_glassware(item)) for item in items]


@router.post("", response_model=GlasswareResponse, status_code=status.HTTP_201_CREATED)
async def create_glassware(
    payload: GlasswareCreate,
    service: GlasswareService = Depends(get_glassware_service),
) -> GlasswareResponse:
    try:
        item = await service.create_glassware(payload)
    except RentalError as exc:
        raise http_error(exc) from exc
    return GlasswareResponse.model_validate(_serialize_glassware(item))


@router.get("/{glassware_id}", response_model=GlasswareResponse)
async def get_glassware(
    glassware_id: str,
    service: GlasswareService = Depends(get_glassware_service),
) -> GlasswareResponse:
    try:
        item = await service.get_glassware(glassware_id)
    except RentalError as exc:
        raise http_error(exc) from exc
    return GlasswareResponse.model_validate(_serialize_glassware(item))


@router.patch("/{glassware_id}", response_model=GlasswareResponse)
async def update_glassware(
    glassware_id: str,
    payload: GlasswareUpdate,
    service: GlasswareService = Depends(get_glassware_service),
) -> GlasswareResponse:
    try:
        item = await service.update_glassware(glassware_id, payload)
    except RentalError as exc:
        raise http_error(exc) from exc
    return GlasswareResponse.model_validate(_serialize_glassware(item))


@router.delete("/{glassware_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_glassware(
    glassware_id: str,
    service: GlasswareService = Depends(get_glassware_service),
) -> Response:
    try:
        await service.delete_glassware(glassware_id)
    except RentalError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
