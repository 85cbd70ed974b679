import json
import logging

import pytest
import structlog

from modules.orders.dtos import CreateOrderDTO


def _json_formatter():
    for handler in logging.getLogger().handlers:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            return handler.formatter
    pytest.fail("console handler with the JSON formatter is not installed")


def _structured(caplog, event):
    return [
        r for r in caplog.records if isinstance(r.msg, dict) and r.msg.get("event") == event
    ]


class TestStructuredLogging:
    def test_order_creation_is_logged_with_context(self, order_service, user, make_product, caplog):
        product = make_product()
        with caplog.at_level(logging.INFO):
            result = order_service.create_order(
                CreateOrderDTO(
                    user_id=user.id,
                    payment_method="cod",
                    items=[{"product_id": product.id, "quantity": 2}],
                )
            )

        (record,) = _structured(caplog, "order.created")
        assert record.msg["order_number"] == result.order.order_number
        assert record.msg["user_id"] == user.id
        assert record.levelname == "INFO"
        assert _structured(caplog, "stock.reserved")

    def test_rejection_is_logged_as_warning(self, order_service, user, make_product, caplog):
        product = make_product(stock=1)
        order_service.create_order(
            CreateOrderDTO(
                user_id=user.id,
                payment_method="cod",
                items=[{"product_id": product.id, "quantity": 5}],
            )
        )

        (record,) = _structured(caplog, "order.creation_rejected")
        assert record.levelname == "WARNING"
        assert record.msg["kind"] == "insufficient_stock"

    def test_refused_cancel_logs_terminal_status(
        self, order_service, user, caller, make_product, caplog
    ):
        product = make_product()
        order = order_service.create_order(
            CreateOrderDTO(
                user_id=user.id,
                payment_method="cod",
                items=[{"product_id": product.id, "quantity": 1}],
            )
        ).order
        order_service.cancel_order(order.id, caller)

        order_service.cancel_order(order.id, caller)

        (record,) = _structured(caplog, "order.cancel_not_allowed")
        assert record.levelname == "WARNING"
        assert record.msg["current_status"] == "cancelled"
        assert record.msg["terminal"] is True

    def test_lines_render_as_masked_json(self, caplog):
        logger = structlog.get_logger("tests.logging")
        with caplog.at_level(logging.INFO):
            logger.info("auth.login", username="shopper", detail="password=hunter2")

        line = json.loads(_json_formatter().format(caplog.records[-1]))

        assert line["event"] == "auth.login"
        assert line["level"] == "info"
        assert line["username"] == "shopper"
        assert "hunter2" not in line["detail"]
        assert "timestamp" in line
