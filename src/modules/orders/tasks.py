"""Asynchronous notification delivery for order events."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from celery import shared_task

from modules.orders.constants import OrderStatus

logger = structlog.get_logger(__name__)

STATUS_TEMPLATES: Dict[str, tuple[str, str]] = {
    OrderStatus.PENDING: (
        "Order Placed",
        "Your order {order_number} has been placed successfully.",
    ),
    OrderStatus.CONFIRMED: (
        "Order Confirmed",
        "Your order {order_number} has been confirmed and is being prepared.",
    ),
    OrderStatus.PROCESSING: (
        "Order Processing",
        "Your order {order_number} is currently being processed.",
    ),
    OrderStatus.SHIPPED: (
        "Order Shipped",
        "Great news! Your order {order_number} has been shipped and is on its way.",
    ),
    OrderStatus.DELIVERED: (
        "Order Delivered",
        "Your order {order_number} has been delivered successfully.",
    ),
    OrderStatus.CANCELLED: (
        "Order Cancelled",
        "Your order {order_number} has been cancelled.",
    ),
    OrderStatus.REFUNDED: (
        "Order Refunded",
        "Your order {order_number} has been refunded.",
    ),
}


def render_notification(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Build the customer-facing message for ``payload['new_status']``."""
    template = STATUS_TEMPLATES.get(payload.get("new_status"))
    if template is None:
        return None
    title, message = template
    return {
        "user_id": payload.get("user_id"),
        "type": "order_status",
        "title": title,
        "message": message.format(order_number=payload.get("order_number")),
        "data": {
            "order_id": payload.get("order_id"),
            "order_number": payload.get("order_number"),
            "status": payload.get("new_status"),
            "total_amount": payload.get("total_amount"),
        },
    }


@shared_task(name="orders.deliver_notification")
def deliver_notification(event_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Render the notification and hand it to the delivery boundary.

    Guest orders have no recipient and are only logged.
    """
    notification = render_notification(payload)
    if notification is None:
        logger.warning(
            "notification.no_template",
            event_name=event_name,
            status=payload.get("new_status"),
        )
        return {"delivered": False, "reason": "no_template"}
    if notification["user_id"] is None:
        logger.info(
            "notification.skipped_guest",
            event_name=event_name,
            order_id=payload.get("order_id"),
        )
        return {"delivered": False, "reason": "guest_order"}

    logger.info(
        "notification.delivered",
        event_name=event_name,
        user_id=notification["user_id"],
        title=notification["title"],
        order_id=payload.get("order_id"),
    )
    return {"delivered": True, "notification": notification}
