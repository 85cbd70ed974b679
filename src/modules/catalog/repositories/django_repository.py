"""Django ORM implementation of the catalog lookup.

Error handling follows the Null Object pattern: a missing or soft-deleted
product yields ``None`` and the order service decides how to report it.
"""

from __future__ import annotations

from typing import Optional

import structlog

from modules.catalog.dtos import ProductSnapshot
from modules.catalog.models import Product
from modules.catalog.repositories.interfaces import ICatalogLookup

logger = structlog.get_logger(__name__)


class CatalogDjangoRepository(ICatalogLookup):
    """Concrete catalog lookup backed by the ``products`` table."""

    def get_product(self, id: int) -> Optional[ProductSnapshot]:
        try:
            product = Product.objects.alive().filter(id=id).first()
        except (TypeError, ValueError):
            return None
        if product is None:
            logger.info("catalog.product_missing", product_id=id)
            return None
        return ProductSnapshot(
            id=product.id,
            name=product.name,
            sku=product.sku,
            price=product.price,
            stock_quantity=product.stock_quantity,
        )
