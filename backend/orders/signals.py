"""
Order events.

Events are sent after the surrounding transaction commits, through
send_robust, so a failing receiver can neither roll back nor break the order
operation that produced the event.

    order_created  - kwargs: order
    order_updated  - kwargs: order, previous_status
    order_merged   - kwargs: order, original_order_ids
    order_deleted  - kwargs: order_id, order_number, tenant_id
"""
import logging

from django.db import transaction
from django.dispatch import Signal, receiver

from core_backend.infrastructure.stats import get_stats_collector

logger = logging.getLogger(__name__)

order_created = Signal()
order_updated = Signal()
order_merged = Signal()
order_deleted = Signal()

_EVENT_NAMES = {
    id(order_created): "order_created",
    id(order_updated): "order_updated",
    id(order_merged): "order_merged",
    id(order_deleted): "order_deleted",
}


def emit_order_event(signal, **kwargs):
    """Queue `signal` to be sent once the current transaction commits."""
    from orders.models import Order

    def _send():
        for receiver_func, response in signal.send_robust(sender=Order, **kwargs):
            if isinstance(response, Exception):
                logger.error(
                    f"Receiver {receiver_func!r} failed for {_EVENT_NAMES.get(id(signal), 'order event')}: {response}",
                    exc_info=response,
                )

    transaction.on_commit(_send)


@receiver(order_created)
@receiver(order_updated)
@receiver(order_merged)
@receiver(order_deleted)
def record_order_event(sender, signal, **kwargs):
    event_name = _EVENT_NAMES.get(id(signal), "order_event")
    order = kwargs.get("order")
    order_number = order.order_number if order is not None else kwargs.get("order_number")
    logger.info(f"{event_name}: {order_number}")
    get_stats_collector().increment(f"orders.events.{event_name}")
