"""Pydantic schemas for the rental service API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt, field_validator

UnitType = Literal["individual", "small_box", "large_box"]
OrderStatus = Literal["pending", "confirmed", "delivered", "returned", "cancelled"]
ManualAdjustmentType = Literal["damage", "restock", "manual"]
AdjustmentType = Literal["order", "return", "damage", "restock", "manual"]


def _validate_email(value: str) -> str:
    value = value.strip()
    if "@" not in value or value.count("@") != 1:
        msg = "invalid email format"
        raise ValueError(msg)
    local, domain = value.split("@")
    if not local or not domain or "." not in domain:
        msg = "invalid email format"
        raise ValueError(msg)
    return value


def _require_text(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        msg = "value must be non-empty"
        raise ValueError(msg)
    return cleaned


# Customers ----------------------------------------------------------------------------------


class CustomerCreate(BaseModel):
    name: str = Field(max_length=255)
    email: str = Field(max_length=255)
    phone: str = Field(max_length=32)
    event_date: date = Field(alias="eventDate")
    event_location: str = Field(alias="eventLocation", max_length=255)
    event_type: str = Field(alias="eventType", max_length=64)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator("name", "phone", "event_location", "event_type")
    @classmethod
    def _strip(cls, value: str) -> str:
        return _require_text(value)


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    event_date: Optional[date] = Field(default=None, alias="eventDate")
    event_location: Optional[str] = Field(default=None, alias="eventLocation", max_length=255)
    event_type: Optional[str] = Field(default=None, alias="eventType", max_length=64)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str | None:
        return None if value is None else _validate_email(value)

    @field_validator("name", "phone", "event_location", "event_type")
    @classmethod
    def _strip(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value)


class CustomerResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    event_date: date = Field(alias="eventDate")
    event_location: str = Field(alias="eventLocation")
    event_type: str = Field(alias="eventType")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# Glassware catalog --------------------------------------------------------------------------


class GlasswareCreate(BaseModel):
    type: str = Field(max_length=128)
    unit_type: UnitType = Field(default="individual", alias="unitType")
    description: str = Field(default="")
    quantity_available: NonNegativeInt = Field(default=0, alias="quantityAvailable")
    price_per_unit: NonNegativeInt = Field(alias="pricePerUnit")
    low_stock_threshold: Optional[NonNegativeInt] = Field(default=None, alias="lowStockThreshold")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("type")
    @classmethod
    def _strip_type(cls, value: str) -> str:
        return _require_text(value)


class GlasswareUpdate(BaseModel):
    type: Optional[str] = Field(default=None, max_length=128)
    description: Optional[str] = None
    quantity_available: Optional[NonNegativeInt] = Field(default=None, alias="quantityAvailable")
    price_per_unit: Optional[NonNegativeInt] = Field(default=None, alias="pricePerUnit")
    low_stock_threshold: Optional[NonNegativeInt] = Field(default=None, alias="lowStockThreshold")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("type")
    @classmethod
    def _strip_type(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value)


class GlasswareResponse(BaseModel):
    id: str
    type: str
    unit_type: UnitType = Field(alias="unitType")
    description: str
    quantity_available: int = Field(alias="quantityAvailable")
    price_per_unit: int = Field(alias="pricePerUnit")
    low_stock_threshold: int = Field(alias="lowStockThreshold")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# Stock accounting ---------------------------------------------------------------------------


class StockItemResponse(BaseModel):
    id: str
    glass_type: str = Field(alias="glassType")
    unit_type: UnitType = Field(alias="unitType")
    glasses_per_unit: int = Field(alias="glassesPerUnit")
    price_per_unit: int = Field(alias="pricePerUnit")
    current_stock: int = Field(alias="currentStock")
    low_stock_threshold: int = Field(alias="lowStockThreshold")
    total_glasses_for_unit_type: int = Field(alias="totalGlassesForUnitType")
    total_available_glasses: int = Field(alias="totalAvailableGlasses")
    stock_status: Literal["in_stock", "low_stock", "out_of_stock"] = Field(alias="stockStatus")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class StockAdjustmentRequest(BaseModel):
    glass_type: str = Field(alias="glassType")
    unit_type: UnitType = Field(alias="unitType")
    quantity_change: int = Field(alias="quantityChange")
    adjustment_type: ManualAdjustmentType = Field(alias="adjustmentType")
    reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("quantity_change")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            msg = "quantityChange must be non-zero"
            raise ValueError(msg)
        return value


class StockQuantityRequest(BaseModel):
    glass_type: str = Field(alias="glassType")
    unit_type: UnitType = Field(alias="unitType")
    quantity: PositiveInt
    reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class StockAdjustmentResponse(BaseModel):
    id: str
    stock_item_id: str = Field(alias="stockItemId")
    glass_type: str = Field(alias="glassType")
    unit_type: str = Field(alias="unitType")
    adjustment_type: AdjustmentType = Field(alias="adjustmentType")
    quantity_change: int = Field(alias="quantityChange")
    previous_stock: int = Field(alias="previousStock")
    new_stock: int = Field(alias="newStock")
    reference_id: Optional[str] = Field(default=None, alias="referenceId")
    reason: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class AvailableGlassesResponse(BaseModel):
    glass_type: str = Field(alias="glassType")
    available_glasses: int = Field(alias="availableGlasses")

    model_config = ConfigDict(populate_by_name=True)


class OrderableStockResponse(BaseModel):
    stock_item_id: str = Field(alias="stockItemId")
    glass_type: str = Field(alias="glassType")
    available_glasses: int = Field(alias="availableGlasses")
    price_per_unit: int = Field(alias="pricePerUnit")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class StockAlertResponse(BaseModel):
    stock_item_id: str = Field(alias="stockItemId")
    glass_type: str = Field(alias="glassType")
    unit_type: str = Field(alias="unitType")
    alert_type: Literal["low_stock", "out_of_stock"] = Field(alias="alertType")
    current_stock: int = Field(alias="currentStock")
    low_stock_threshold: int = Field(alias="lowStockThreshold")
    raised_at: datetime = Field(alias="raisedAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# Orders -------------------------------------------------------------------------------------


class OrderCreate(BaseModel):
    customer_id: str = Field(alias="customerId")
    glassware_id: str = Field(alias="glasswareId")
    quantity: PositiveInt
    order_date: date = Field(alias="orderDate")
    delivery_date: date = Field(alias="deliveryDate")
    status: OrderStatus = "pending"

    model_config = ConfigDict(populate_by_name=True)


class OrderUpdate(BaseModel):
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    glassware_id: Optional[str] = Field(default=None, alias="glasswareId")
    quantity: Optional[PositiveInt] = None
    order_date: Optional[date] = Field(default=None, alias="orderDate")
    delivery_date: Optional[date] = Field(default=None, alias="deliveryDate")
    status: Optional[OrderStatus] = None

    model_config = ConfigDict(populate_by_name=True)


class OrderResponse(BaseModel):
    id: str
    customer_id: str = Field(alias="customerId")
    customer_name: str = Field(alias="customerName")
    glassware_id: str = Field(alias="glasswareId")
    glassware_type: str = Field(alias="glasswareType")
    quantity: int
    order_date: date = Field(alias="orderDate")
    delivery_date: date = Field(alias="deliveryDate")
    status: OrderStatus
    total_amount: int = Field(alias="totalAmount")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# Reports ------------------------------------------------------------------------------------


class DashboardStatsResponse(BaseModel):
    total_customers: int = Field(alias="totalCustomers")
    total_orders: int = Field(alias="totalOrders")
    total_glassware: int = Field(alias="totalGlassware")
    pending_orders: int = Field(alias="pendingOrders")
    total_revenue: int = Field(alias="totalRevenue")
    total_inventory_value: int = Field(alias="totalInventoryValue")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)
