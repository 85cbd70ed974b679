"""Order domain exceptions.

Raised inside the service's unit of work so ``transaction.atomic`` rolls
back every write made so far.  Each exception carries the ``ErrorKind``
it is reported as once the service converts it into an ``OrderError``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from modules.orders.results import ErrorKind, OrderError


class OrderDomainError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        product_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.product_id = product_id
        self.details = details or {}

    def to_error(self) -> OrderError:
        return OrderError(
            kind=self.kind,
            message=self.message,
            product_id=self.product_id,
            details=self.details,
        )


class OrderValidationError(OrderDomainError):
    """Input that passed the DTO checks but is still unusable."""

    kind = ErrorKind.VALIDATION


class OrderNotFound(OrderDomainError):
    """The order does not exist or is not visible to the caller."""

    kind = ErrorKind.NOT_FOUND


class ProductNotFound(OrderDomainError):
    """A product referenced by an order item is not in the catalog."""

    kind = ErrorKind.NOT_FOUND


class AddressNotFound(OrderDomainError):
    """A shipping or billing address does not exist or belongs to someone else."""

    kind = ErrorKind.NOT_FOUND


class InvalidOrderStatus(OrderDomainError):
    """An illegal status transition was attempted."""

    kind = ErrorKind.ILLEGAL_TRANSITION


class OrderNumberConflict(OrderDomainError):
    """No unique order number could be persisted after every retry."""

    kind = ErrorKind.UNIQUENESS_CONFLICT
