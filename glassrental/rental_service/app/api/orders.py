"""Order HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from ..dependencies import get_order_service
from ..errors import RentalError
from ..models import Order
from ..schemas import OrderCreate, OrderResponse, OrderStatus, OrderUpdate
from ..services import OrderService
from .errors import http_error

router = APIRouter(prefix="/orders", tags=["orders"])


def _serialize_order(order: Order) -> dict[str, object]:
    return {
        "id": order.id,
        "customerId": order.customer_id,
        "customerName": order.customer_name,
        "glasswareId": order.stock_item_id,
        "glasswareType": order.glassware_type,
        "quantity": order.quantity,
        "orderDate": order.order_date,
        "deliveryDate": order.delivery_date,
        "status": order.status,
        "totalAmount": order.total_amount,
        "createdAt": order.created_at,
        "updatedAt": order.updated_at,
    }


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    customer_id: str | None = Query(default=None, alias="customerId"),
    service: OrderService = Depends(get_order_service),
) -> list[OrderResponse]:
    try:
        orders = await service.list_orders(customer_id=customer_id, status=status_filter)
    except RentalError as exc:
        raise http_error(exc) from exc
    return [OrderResponse.model_validate(_serialize_order(order)) for order in orders]


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    try:
        order = await service.create_order(payload)
    except RentalError as exc:
        raise http_error(exc) from exc
    return OrderResponse.model_validate(_serialize_order(order))


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, service: OrderService = Depends(get_order_service)) -> OrderResponse:
    try:
        order = await service.get_order(order_id)
    except RentalError as exc:
        raise http_error(exc) from exc
    return OrderResponse.model_validate(_serialize_order(order))


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    payload: OrderUpdate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    try:
        order = await service.update_order(order_id, payload)
    except RentalError as exc:
        raise http_error(exc) from exc
    return OrderResponse.model_validate(_serialize_order(order))


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: str, service: OrderService = Depends(get_order_service)) -> Response:
    try:
        await service.delete_order(order_id)
    except RentalError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
