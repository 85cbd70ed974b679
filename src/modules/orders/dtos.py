"""Order DTOs for the Service Layer.

Framework-agnostic, immutable (``frozen=True``) pydantic v2 models that
form the contract between the API layer and ``OrderService``.  Input that
does not conform is rejected here, before any lookup or write happens.

- ``CreateOrderItemDTO``: one requested line (product + quantity).
- ``CreateOrderDTO``: a whole creation request.
- ``Caller``: who is asking, and whether they may see every order.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional

from django.conf import settings
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import PaymentMethod

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A requested line.  The price is resolved from the catalog, never sent."""

    model_config = ConfigDict(frozen=True)

    product_id: int = Field(gt=0)
    quantity: int = Field(gt=0)


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` holds at least one line and no product twice.
    - ``currency`` is one of ``ORDER_SUPPORTED_CURRENCIES`` (defaults to
      ``ORDER_DEFAULT_CURRENCY``).
    - ``discount_amount`` is not negative.
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    payment_method: PaymentMethod
    items: List[CreateOrderItemDTO]
    currency: Optional[str] = Field(default=None, validate_default=True)
    shipping_address_id: Optional[int] = None
    billing_address_id: Optional[int] = None
    notes: str = ""
    discount_amount: Decimal = Field(default=Decimal("0.00"), ge=0)

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("currency")
    @classmethod
    def currency_must_be_supported(cls, v: Optional[str]) -> str:
        currency = (v or settings.ORDER_DEFAULT_CURRENCY).upper()
        if currency not in settings.ORDER_SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency '{currency}'.")
        return currency

    @model_validator(mode="after")
    def no_duplicate_products(self) -> CreateOrderDTO:
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


class Caller(BaseModel):
    """The identity an operation runs on behalf of.

    ``user_id`` is ``None`` for guests.  Privileged callers (staff) see and
    manage every order.
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    is_privileged: bool = False

    @classmethod
    def from_user(cls, user: Any) -> Caller:
        if user is None or not getattr(user, "is_authenticated", False):
            return cls()
        return cls(user_id=user.pk, is_privileged=bool(user.is_staff))

    def can_see(self, owner_id: Optional[int]) -> bool:
        return self.is_privileged or (
            self.user_id is not None and owner_id == self.user_id
        )
