"""Catalog repositories package."""

from modules.catalog.repositories.django_repository import CatalogDjangoRepository
from modules.catalog.repositories.interfaces import ICatalogLookup

__all__ = ["CatalogDjangoRepository", "ICatalogLookup"]
