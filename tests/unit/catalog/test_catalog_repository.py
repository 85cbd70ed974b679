import pytest

from modules.catalog.dtos import ProductSnapshot
from modules.catalog.repositories import CatalogDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return CatalogDjangoRepository()


class TestCatalogLookup:
    def test_returns_snapshot(self, repo, make_product):
        product = make_product(price="249.50", stock=6, sku="mug-01", name="Mug")

        snapshot = repo.get_product(product.id)

        assert snapshot == ProductSnapshot(
            id=product.id, name="Mug", sku="MUG-01", price=product.price, stock_quantity=6
        )

    def test_missing_product(self, repo):
        assert repo.get_product(123456) is None

    def test_soft_deleted_product_is_invisible(self, repo, make_product):
        product = make_product()
        product.delete()
        assert repo.get_product(product.id) is None

    def test_malformed_id(self, repo):
        assert repo.get_product("not-a-number") is None
