from django.apps import AppConfig
from django.conf import settings


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.notifiers import build_notifiers

        # Fail at startup on a misspelled channel, not on the first order.
        build_notifiers(settings.ORDER_NOTIFIER_CHANNELS)
