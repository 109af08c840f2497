"""Customer HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_customer_service
from ..errors import RentalError
from ..schemas import CustomerCreate, CustomerResponse, CustomerUpdate
from ..services import CustomerService
from .errors import http_error

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=list[CustomerResponse])
async def list_customers(service: CustomerService = Depends(get_customer_service)) -> list[CustomerResponse]:
    try:
        customers = await service.list_customers()
    except RentalError as exc:
        raise http_error(exc) from exc
    return [CustomerResponse.model_validate(customer) for customer in customers]


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    try:
        customer = await service.create_customer(payload)
    except RentalError as exc:
        raise http_error(exc) from exc
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    try:
        customer = await service.get_customer(customer_id)
    except RentalError as exc:
        raise http_error(exc) from exc
    return CustomerResponse.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    try:
        customer = await service.update_customer(customer_id, payload)
    except RentalError as exc:
        raise http_error(exc) from exc
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str,
    service: CustomerService = Depends(get_customer_service),
) -> Response:
    try:
        await service.delete_customer(customer_id)
    except RentalError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
