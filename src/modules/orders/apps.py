from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            DriverAssigned,
            OrderCreated,
            OrderStatusChanged,
            OrderUpdated,
        )
        from modules.orders.handlers import (
            driver_assigned_handler,
            order_created_handler,
            order_status_changed_handler,
            order_updated_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderCreated, order_created_handler)
        event_bus.subscribe(OrderUpdated, order_updated_handler)
        event_bus.subscribe(OrderStatusChanged, order_status_changed_handler)
        event_bus.subscribe(DriverAssigned, driver_assigned_handler)
