"""Domain errors raised by the rental service layers."""

from __future__ import annotations


class RentalError(Exception):
    """Base class for every failure the rental domain reports to callers."""


class NotFound(RentalError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateKey(RentalError):
    def __init__(self, entity: str, field: str, value: object) -> None:
        super().__init__(f"A {entity.lower()} with this {field} already exists: {value}")
        self.entity = entity
        self.field = field
        self.value = value


class InsufficientStock(RentalError):
    def __init__(self, *, glass_type: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient inventory for {glass_type}: requested {requested}, only {available} available"
        )
        self.glass_type = glass_type
        self.requested = requested
        self.available = available


class InvalidAdjustment(RentalError):
    def __init__(self, *, current_stock: int, quantity_change: int, message: str | None = None) -> None:
        super().__init__(
            message
            or (
                f"Cannot reduce stock below zero: current stock {current_stock}, "
                f"change {quantity_change}"
            )
        )
        self.current_stock = current_stock
        self.quantity_change = quantity_change


class ConcurrentModification(RentalError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} was modified concurrently; retry the operation")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceFailure(RentalError):
    """Storage-level failure; ``step`` names the operation that failed and the cause is chained."""

    def __init__(self, step: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Persistence failure while {step}{detail}")
        self.step = step
        self.cause = cause
