"""Integration tests for the error body returned by the order API."""

import pytest

pytestmark = pytest.mark.integration


class TestErrorFormat:
    def test_auth_error_has_detail(self, api_client):
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        assert "detail" in response.json()

    def test_malformed_json_returns_400(self, auth_client):
        response = auth_client.post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        assert "detail" in response.json()

    def test_domain_error_carries_code(self, auth_client):
        response = auth_client.get("/api/v1/orders/424242/")
        assert response.status_code == 404
        assert response.json() == {"detail": "Order 424242 not found.", "code": "not_found"}

    def test_stock_error_names_the_product(self, auth_client, make_product):
        product = make_product(stock=0)
        response = auth_client.post(
            "/api/v1/orders/",
            {"payment_method": "cod", "items": [{"product_id": product.id, "quantity": 1}]},
            format="json",
        )
        body = response.json()
        assert response.status_code == 409
        assert set(body) == {"detail", "code", "product_id"}
        assert body["code"] == "insufficient_stock"
        assert body["product_id"] == product.id

    def test_serializer_errors_are_keyed_by_field(self, auth_client):
        response = auth_client.post("/api/v1/orders/", {"items": []}, format="json")
        assert response.status_code == 400
        assert {"payment_method", "items"} <= set(response.json())
