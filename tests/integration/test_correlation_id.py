import logging
import uuid

import pytest

pytestmark = pytest.mark.integration


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        request_id = client.get("/health")["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert any(custom_id in record.getMessage() for record in caplog.records)

    def test_correlation_id_reaches_order_logs(
        self, api_client_with_correlation, user, make_product, caplog
    ):
        client, cid = api_client_with_correlation
        client.force_authenticate(user=user)
        product = make_product()

        with caplog.at_level(logging.INFO):
            response = client.post(
                "/api/v1/orders/",
                {"payment_method": "cod", "items": [{"product_id": product.id, "quantity": 1}]},
                format="json",
            )

        assert response["X-Request-ID"] == cid
        created = [r.getMessage() for r in caplog.records if "order.created" in r.getMessage()]
        assert created
        assert all(cid in message for message in created)
