"""Read-side repository contract shared by every aggregate.

Writes are left to the aggregate-specific interfaces: orders are never
deleted and catalog stock only moves through the reservation ledger, so a
generic ``save`` / ``delete`` pair would have no honest implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, Protocol, TypeVar

from django.db import models

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Queryable(Protocol[T_co]):
    """Lazy result set the HTTP layer can keep filtering and paginating."""

    def filter(self, **kwargs: Any) -> models.QuerySet: ...


class IRepository(ABC, Generic[T]):
    @abstractmethod
    def get_by_id(self, id: int) -> Optional[T]:
        """Return the entity, or ``None`` for unknown or malformed ids."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Queryable[T]:
        """Every entity matching ``filters`` (field lookups), unevaluated."""
