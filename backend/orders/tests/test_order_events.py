"""
Order events are sent after commit and never break the order operation.
"""
import pytest

from django.db import transaction

from core_backend.infrastructure.stats import get_stats_collector
from orders.models import Order
from orders.services import OrderService
from orders.signals import order_created, order_deleted, order_merged, order_updated


@pytest.fixture
def received():
    """Collect (signal name, kwargs) for every order event."""
    events = []
    handlers = {}
    for name, signal in [
        ("created", order_created),
        ("updated", order_updated),
        ("merged", order_merged),
        ("deleted", order_deleted),
    ]:
        def handler(sender, name=name, **kwargs):
            events.append((name, kwargs))
        handlers[signal] = handler
        signal.connect(handler, weak=False)
    yield events
    for signal, handler in handlers.items():
        signal.disconnect(handler)


@pytest.mark.django_db
class TestOrderEvents:

    def test_events_wait_for_commit(self, tenant, latte, received, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            OrderService.create_order(tenant, [{"menu_item": latte}])

        assert received == []
        assert len(callbacks) == 1

        callbacks[0]()
        assert [name for name, _ in received] == ["created"]

    def test_status_change_event_carries_previous_status(
        self, tenant, latte, received, django_capture_on_commit_callbacks
    ):
        order = OrderService.create_order(tenant, [{"menu_item": latte}]).order

        with django_capture_on_commit_callbacks(execute=True):
            OrderService.update_status(order, Order.OrderStatus.PROCESS)

        name, kwargs = received[-1]
        assert name == "updated"
        assert kwargs["previous_status"] == Order.OrderStatus.NEW
        assert kwargs["order"].status == Order.OrderStatus.PROCESS

    def test_rolled_back_operation_sends_nothing(self, tenant, latte, received, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RuntimeError):
                with transaction.atomic():
                    OrderService.create_order(tenant, [{"menu_item": latte}])
                    raise RuntimeError("abort")

        assert callbacks == []
        assert received == []

    def test_merge_and_delete_events(self, tenant, latte, received, django_capture_on_commit_callbacks):
        first = OrderService.create_order(tenant, [{"menu_item": latte}]).order
        second = OrderService.create_order(tenant, [{"menu_item": latte}]).order

        with django_capture_on_commit_callbacks(execute=True):
            merged = OrderService.merge_orders([first.pk, second.pk]).order
            OrderService.delete_order(merged)

        assert [name for name, _ in received] == ["merged", "deleted"]
        assert received[0][1]["original_order_ids"] == [str(first.pk), str(second.pk)]
        assert received[1][1]["order_number"] == merged.order_number

    def test_failing_receiver_is_isolated(self, tenant, latte, received, django_capture_on_commit_callbacks, caplog):
        def broken(sender, **kwargs):
            raise RuntimeError("webhook down")

        order_created.connect(broken, weak=False)
        try:
            with caplog.at_level("ERROR", logger="orders"):
                with django_capture_on_commit_callbacks(execute=True):
                    result = OrderService.create_order(tenant, [{"menu_item": latte}])
        finally:
            order_created.disconnect(broken)

        assert result.order.pk is not None
        assert [name for name, _ in received] == ["created"]
        assert "webhook down" in caplog.text

    def test_events_are_counted(self, tenant, latte, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            order = OrderService.create_order(tenant, [{"menu_item": latte}]).order
            OrderService.cancel_order(order)

        stats = get_stats_collector().snapshot()
        assert stats["orders.events.order_created"] == 1
        assert stats["orders.events.order_updated"] == 1
