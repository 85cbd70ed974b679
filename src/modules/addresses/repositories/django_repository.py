"""Django ORM implementation of the Address repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.db.models import QuerySet

from modules.addresses.models import Address
from modules.addresses.repositories.interfaces import IAddressRepository


class AddressDjangoRepository(IAddressRepository):
    """Concrete Address repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[Address]:
        try:
            return Address.objects.filter(id=id).first()
        except (TypeError, ValueError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Address]:
        queryset = Address.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_for_user(self, id: int, user_id: Optional[int]) -> Optional[Address]:
        address = self.get_by_id(id)
        if address is None or address.user_id != user_id:
            return None
        return address
