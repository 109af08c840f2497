"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from ..errors import (
    ConcurrentModification,
    DuplicateKey,
    InsufficientStock,
    InvalidAdjustment,
    NotFound,
    PersistenceFailure,
    RentalError,
)

_LOGGER = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[RentalError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    DuplicateKey: status.HTTP_409_CONFLICT,
    InsufficientStock: status.HTTP_409_CONFLICT,
    ConcurrentModification: status.HTTP_409_CONFLICT,
    InvalidAdjustment: status.HTTP_400_BAD_REQUEST,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(exc: RentalError) -> HTTPException:
    """Map a domain error to the ``HTTPException`` a route should raise."""

    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        _LOGGER.error("Request failed: %s", exc)
    return HTTPException(status_code=status_code, detail=str(exc))
