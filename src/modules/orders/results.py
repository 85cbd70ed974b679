"""Typed outcomes of order service operations.

Service commands never leak exceptions for expected business failures;
they return an ``OrderResult`` carrying either the order or an
``OrderError`` whose ``kind`` callers branch on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

if TYPE_CHECKING:
    from modules.orders.models import Order


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    ILLEGAL_TRANSITION = "illegal_transition"
    UNIQUENESS_CONFLICT = "uniqueness_conflict"
    PERSISTENCE = "persistence"


@dataclass(frozen=True)
class OrderError:
    kind: ErrorKind
    message: str
    product_id: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderResult:
    order: Optional[Order] = None
    error: Optional[OrderError] = None
    warnings: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, order: Order, warnings: Tuple[str, ...] = ()) -> OrderResult:
        return cls(order=order, warnings=warnings)

    @classmethod
    def failure(cls, error: OrderError) -> OrderResult:
        return cls(error=error)
