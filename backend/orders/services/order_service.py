import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from cogs.services.costing_service import CostLockingService, OrderLineInput
from core_backend.exceptions import (
    ConsistencyViolationError,
    DeletionForbiddenError,
    InvalidOperationError,
    InvalidTransitionError,
    NotFoundError,
)
from customers.models import normalize_phone
from inventory.services import InventoryService
from orders.models import Order, OrderItem
from orders.signals import (
    emit_order_event,
    order_created,
    order_deleted,
    order_merged,
    order_updated,
)
from products.models import MenuItem
from shifts.models import PaymentMethod
from .results import TransitionResult
from .settlement_service import SettlementService

logger = logging.getLogger(__name__)


class OrderService:
    """
    Order state machine.

    Every public method runs in one database transaction: stock deductions,
    the stock_deducted flag and the status change commit or roll back
    together. Settlement side effects run in their own savepoints and are
    reported on the returned TransitionResult.
    """

    VALID_STATUS_TRANSITIONS = {
        Order.OrderStatus.NEW: [
            Order.OrderStatus.PROCESS,
            Order.OrderStatus.SERVED,
            Order.OrderStatus.DONE,
            Order.OrderStatus.CANCEL,
        ],
        Order.OrderStatus.PROCESS: [
            Order.OrderStatus.SERVED,
            Order.OrderStatus.DONE,
            Order.OrderStatus.CANCEL,
        ],
        Order.OrderStatus.SERVED: [
            Order.OrderStatus.DONE,
            Order.OrderStatus.CANCEL,
        ],
        Order.OrderStatus.DONE: [],
        Order.OrderStatus.CANCEL: [],
        Order.OrderStatus.MERGED: [],
    }

    @staticmethod
    def _lock_order(order):
        try:
            return Order.all_objects.select_for_update().get(pk=order.pk)
        except Order.DoesNotExist:
            raise NotFoundError("Order", order.pk)

    @staticmethod
    def _resolve_line(tenant, line):
        """Accept OrderLineInput or a dict with menu_item (instance or id)."""
        if isinstance(line, OrderLineInput):
            menu_item, quantity, unit_price, notes = line.menu_item, line.quantity, line.unit_price, line.notes
        else:
            menu_item = line.get("menu_item")
            quantity = line.get("quantity", 1)
            unit_price = line.get("unit_price")
            notes = line.get("notes", "")

        if not isinstance(menu_item, MenuItem):
            try:
                menu_item = MenuItem.all_objects.get(pk=menu_item, tenant=tenant)
            except (MenuItem.DoesNotExist, ValueError, TypeError):
                raise NotFoundError("Menu item", menu_item)
        elif menu_item.tenant_id != tenant.pk:
            raise NotFoundError("Menu item", menu_item.pk)

        quantity = int(quantity)
        if quantity < 1:
            raise InvalidOperationError("Item quantity must be at least 1")
        if unit_price is not None:
            unit_price = Decimal(str(unit_price))
        return OrderLineInput(menu_item=menu_item, quantity=quantity, unit_price=unit_price, notes=notes or "")

    @staticmethod
    @transaction.atomic
    def create_order(
        tenant,
        items,
        customer=None,
        customer_name: str = "",
        customer_phone: str = "",
        table_number: str = "",
        note: str = "",
        status: str = Order.OrderStatus.NEW,
        payment_status: str = Order.PaymentStatus.UNPAID,
        payment_method: str = "",
        user=None,
    ) -> TransitionResult:
        """
        Place an order with locked costs. No stock moves at placement.

        Walk-in flow: an order created paid or done is immediately taken
        through the deduction and settlement of the done transition.
        """
        if not items:
            raise InvalidOperationError("An order needs at least one item")

        lines = [OrderService._resolve_line(tenant, line) for line in items]
        costs = CostLockingService().lock_costs(lines)

        order = Order.all_objects.create(
            tenant=tenant,
            customer=customer,
            customer_name=customer_name or (customer.name if customer else ""),
            customer_phone=normalize_phone(customer_phone or (customer.phone if customer else "")),
            table_number=table_number,
            note=note,
            status=Order.OrderStatus.NEW,
            payment_status=Order.PaymentStatus.UNPAID,
            subtotal=costs.subtotal,
            total=costs.subtotal,
            total_cost=costs.total_cost,
            created_by=user,
        )
        for line in costs.lines:
            OrderItem.all_objects.create(
                tenant=tenant,
                order=order,
                menu_item=line.menu_item,
                name=line.menu_item.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                locked_cost=line.locked_cost,
                notes=line.notes,
            )

        logger.info(
            f"Order {order.order_number} created: total {order.total}, locked cost {order.total_cost}"
        )
        emit_order_event(order_created, order=order)

        if payment_status == Order.PaymentStatus.PAID:
            return OrderService.pay_order(
                order,
                payment_method=payment_method or PaymentMethod.CASH,
                user=user,
                complete=True,
            )
        if status and status != Order.OrderStatus.NEW:
            return OrderService.update_status(order, status, user=user)
        return TransitionResult(order=order)

    @staticmethod
    def _ensure_stock_deducted(order, user=None):
        """
        Deduct the order's ingredients unless already done.

        The stock_deducted flag is claimed with a conditional UPDATE in the
        same transaction as the deductions, so a failure rolls back both.

        Returns:
            True if this call performed the deduction.
        """
        claimed = Order.all_objects.filter(pk=order.pk, stock_deducted=False).update(
            stock_deducted=True
        )
        if not claimed:
            order.stock_deducted = True
            return False

        if InventoryService.get_outstanding_deductions(order):
            raise ConsistencyViolationError(
                f"Order {order.order_number} is not marked as deducted but its stock "
                f"history shows outstanding deductions"
            )

        InventoryService.deduct_order_ingredients(order, user=user)
        order.stock_deducted = True
        return True

    @staticmethod
    def _release_stock(order, user=None, reason=""):
        if not order.stock_deducted:
            return False
        InventoryService.revert_order_ingredients(order, user=user, reason=reason)
        Order.all_objects.filter(pk=order.pk).update(stock_deducted=False)
        order.stock_deducted = False
        return True

    @staticmethod
    @transaction.atomic
    def update_status(order, new_status, user=None, reason: str = "") -> TransitionResult:
        """
        Move an order to `new_status`, running the compensating actions:

        - process/served/done: deduct stock once (stock_deducted guard)
        - done: settle loyalty (at most once); the shift is accrued on payment
        - cancel: revert deducted stock, refund a paid order out of its shift

        Re-entering the current status is a no-op.
        """
        order = OrderService._lock_order(order)
        result = TransitionResult(order=order)

        if new_status not in Order.OrderStatus.values:
            raise InvalidTransitionError(f"Unknown order status '{new_status}'")
        if new_status == Order.OrderStatus.MERGED:
            raise InvalidTransitionError("Orders can only be merged through the merge operation")
        if new_status == order.status:
            return result
        if new_status not in OrderService.VALID_STATUS_TRANSITIONS.get(order.status, []):
            raise InvalidTransitionError(
                f"Cannot transition order from {order.status} to {new_status}."
            )

        if new_status == Order.OrderStatus.CANCEL:
            return OrderService._cancel(order, result, user=user, reason=reason)

        previous_status = order.status
        if new_status in Order.DEDUCTING_STATUSES:
            result.stock_deducted_now = OrderService._ensure_stock_deducted(order, user=user)

        order.status = new_status
        update_fields = ['status', 'stock_deducted', 'updated_at']
        if new_status == Order.OrderStatus.DONE:
            order.completed_at = timezone.now()
            update_fields.append('completed_at')
        order.save(update_fields=update_fields)

        if new_status == Order.OrderStatus.DONE:
            result.side_effects.extend(SettlementService.settle(order))

        logger.info(f"Order {order.order_number}: {previous_status} -> {new_status}")
        emit_order_event(order_updated, order=order, previous_status=previous_status)
        return result

    @staticmethod
    def _cancel(order, result, user=None, reason=""):
        previous_status = order.status
        result.stock_reverted_now = OrderService._release_stock(order, user=user, reason=reason)

        if order.payment_status == Order.PaymentStatus.PAID:
            order.payment_status = Order.PaymentStatus.REFUNDED
            result.side_effects.extend(SettlementService.reverse(order))

        order.status = Order.OrderStatus.CANCEL
        order.cancellation_reason = reason
        order.cancelled_by = user if user is not None and user.is_authenticated else None
        order.save(update_fields=[
            'status', 'payment_status', 'stock_deducted',
            'cancellation_reason', 'cancelled_by', 'updated_at',
        ])

        logger.info(f"Order {order.order_number} cancelled ({reason or 'no reason given'})")
        emit_order_event(order_updated, order=order, previous_status=previous_status)
        return result

    @staticmethod
    def cancel_order(order, user=None, reason: str = "") -> TransitionResult:
        return OrderService.update_status(order, Order.OrderStatus.CANCEL, user=user, reason=reason)

    @staticmethod
    @transaction.atomic
    def pay_order(order, payment_method=PaymentMethod.CASH, user=None, complete=True) -> TransitionResult:
        """
        Record payment, accrue it to the open shift under the method used,
        and settle the order.

        Paying twice is rejected. With complete=True (the POS default) the
        order also moves to done; otherwise it keeps its status, e.g. when
        customers pay at the counter before the kitchen finishes.
        """
        order = OrderService._lock_order(order)

        if order.payment_status == Order.PaymentStatus.PAID:
            raise InvalidTransitionError("Order already paid")
        if order.status in (Order.OrderStatus.CANCEL, Order.OrderStatus.MERGED):
            raise InvalidTransitionError(f"Cannot pay a {order.status} order")
        if order.payment_status == Order.PaymentStatus.REFUNDED:
            raise InvalidTransitionError("Cannot pay a refunded order")

        payment_method = payment_method or PaymentMethod.CASH
        if payment_method not in PaymentMethod.values:
            raise InvalidOperationError(f"Unknown payment method '{payment_method}'")

        order.payment_status = Order.PaymentStatus.PAID
        order.payment_method = payment_method
        order.save(update_fields=['payment_status', 'payment_method', 'updated_at'])
        logger.info(f"Order {order.order_number} paid via {payment_method}")
        shift_outcome = SettlementService.record_payment(order)

        if complete and order.status != Order.OrderStatus.DONE:
            result = OrderService.update_status(order, Order.OrderStatus.DONE, user=user)
            result.side_effects.insert(0, shift_outcome)
            return result

        result = TransitionResult(order=order, side_effects=[shift_outcome])
        result.side_effects.extend(SettlementService.settle(order))
        emit_order_event(order_updated, order=order, previous_status=order.status)
        return result

    @staticmethod
    @transaction.atomic
    def merge_orders(order_ids, merged_by=None) -> TransitionResult:
        """
        Combine unprocessed orders into one new order.

        Preconditions: at least two distinct orders, all exist for the current
        tenant, none merged or cancelled, none paid, and none with stock
        already deducted. Items are copied with their locked costs; totals
        are summed. The originals become status=merged and are hidden from
        the POS.
        """
        ids = list(dict.fromkeys(str(order_id) for order_id in order_ids))
        if len(ids) < 2:
            raise InvalidOperationError("At least two orders are required to merge")

        orders = list(
            Order.objects.select_for_update().filter(pk__in=ids).order_by('created_at', 'order_number')
        )
        found = {str(o.pk) for o in orders}
        missing = [order_id for order_id in ids if order_id not in found]
        if missing:
            raise NotFoundError("Order", missing[0])

        for o in orders:
            if o.status in (Order.OrderStatus.MERGED, Order.OrderStatus.CANCEL):
                raise InvalidTransitionError(f"Order {o.order_number} is {o.status} and cannot be merged")
            if o.payment_status == Order.PaymentStatus.PAID:
                raise InvalidTransitionError(f"Order {o.order_number} is already paid and cannot be merged")
            if o.stock_deducted:
                raise InvalidTransitionError(
                    f"Order {o.order_number} has already been processed; only unprocessed orders can be merged"
                )

        primary = orders[0]
        merged = Order.all_objects.create(
            tenant_id=primary.tenant_id,
            customer=primary.customer,
            customer_name=primary.customer_name,
            customer_phone=primary.customer_phone,
            table_number=primary.table_number,
            note=" | ".join(o.note for o in orders if o.note),
            status=Order.OrderStatus.NEW,
            subtotal=sum((o.subtotal for o in orders), Decimal("0")),
            total=sum((o.total for o in orders), Decimal("0")),
            total_cost=sum((o.total_cost for o in orders), Decimal("0")),
            is_merged=True,
            original_order_ids=[str(o.pk) for o in orders],
            created_by=merged_by,
        )

        for o in orders:
            for item in OrderItem.all_objects.filter(order=o).order_by('id'):
                OrderItem.all_objects.create(
                    tenant_id=merged.tenant_id,
                    order=merged,
                    menu_item_id=item.menu_item_id,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    locked_cost=item.locked_cost,
                    notes=item.notes,
                )

        Order.all_objects.filter(pk__in=[o.pk for o in orders]).update(
            status=Order.OrderStatus.MERGED,
            merged_into=merged,
            is_archived_from_pos=True,
            updated_at=timezone.now(),
        )

        logger.info(
            f"Merged orders {', '.join(o.order_number for o in orders)} into {merged.order_number}"
        )
        emit_order_event(order_merged, order=merged, original_order_ids=merged.original_order_ids)
        return TransitionResult(order=merged)

    @staticmethod
    @transaction.atomic
    def delete_order(order, user=None):
        """
        Delete an order that never became part of the financial record.
        Paid or completed orders are protected.
        """
        order = OrderService._lock_order(order)
        if order.payment_status == Order.PaymentStatus.PAID or order.status == Order.OrderStatus.DONE:
            raise DeletionForbiddenError("Cannot delete paid or completed order")

        OrderService._release_stock(order, user=user, reason="order deleted")

        order_id, order_number, tenant_id = order.pk, order.order_number, order.tenant_id
        order.delete()

        logger.info(f"Order {order_number} deleted")
        emit_order_event(order_deleted, order_id=order_id, order_number=order_number, tenant_id=tenant_id)

    @staticmethod
    def get_active_orders_for_phone(phone):
        """New/in-process orders of the current tenant for a customer phone."""
        phone = normalize_phone(phone)
        if not phone:
            return Order.objects.none()
        return Order.objects.visible().active().filter(customer_phone=phone).prefetch_related('items')
