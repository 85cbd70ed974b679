"""Address repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.addresses.models import Address


class IAddressRepository(IRepository["Address"]):
    """Read access to addresses for order placement."""

    @abstractmethod
    def get_for_user(self, id: int, user_id: Optional[int]) -> Optional[Address]:
        """Return the address only if it belongs to ``user_id``.

        A guest (``user_id=None``) can only use addresses without an owner.
        """
