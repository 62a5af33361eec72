from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.notifications"
    label = "notifications"

    def ready(self) -> None:
        from modules.notifications.handlers import (
            order_created_handler,
            order_shipped_handler,
            payment_confirmed_handler,
        )
        from modules.orders.events import OrderCreated, OrderShipped, PaymentConfirmed
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderCreated, order_created_handler)
        event_bus.subscribe(PaymentConfirmed, payment_confirmed_handler)
        event_bus.subscribe(OrderShipped, order_shipped_handler)
