"""
Order state machine tests.

Covers order placement with locked costs, stock deduction on the way to
process/served/done, reversion on cancel, and the walk-in flows that create
an order already paid or in progress.
"""
import pytest
from decimal import Decimal

from core_backend.exceptions import (
    ConsistencyViolationError,
    InsufficientStockError,
    InvalidOperationError,
    InvalidTransitionError,
    NotFoundError,
)
from inventory.models import Ingredient, StockHistoryEntry
from inventory.services import InventoryService, order_reference
from orders.models import Order, OrderItem
from orders.services import OrderService


def stock_of(ingredient):
    return Ingredient.all_objects.get(pk=ingredient.pk).stock_quantity


def place(tenant, *lines, **kwargs):
    items = [{"menu_item": menu_item, "quantity": quantity} for menu_item, quantity in lines]
    return OrderService.create_order(tenant, items, **kwargs).order


@pytest.mark.django_db
class TestCreateOrder:
    """Placing orders"""

    def test_order_gets_sequential_number_per_tenant(self, tenant, latte, tenant_b):
        first = place(tenant, (latte, 1))
        second = place(tenant, (latte, 1))

        assert first.order_number == "ORD-00001"
        assert second.order_number == "ORD-00002"

    def test_placement_locks_costs_without_moving_stock(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 2))

        item = order.items.get()
        assert item.locked_cost == Decimal("2.0000")
        assert item.unit_price == Decimal("25000")
        assert item.name == "Latte"
        assert order.total == Decimal("50000")
        assert order.total_cost == Decimal("4.0000")
        assert order.status == Order.OrderStatus.NEW
        assert order.stock_deducted is False
        assert stock_of(coffee_beans) == Decimal("1000")

    def test_menu_item_can_be_given_by_id(self, tenant, latte):
        order = OrderService.create_order(
            tenant, [{"menu_item": latte.pk, "quantity": 1, "unit_price": "22000"}]
        ).order

        assert order.total == Decimal("22000")

    def test_unknown_menu_item(self, tenant):
        with pytest.raises(NotFoundError):
            OrderService.create_order(tenant, [{"menu_item": 999999}])

    def test_menu_item_of_other_tenant_is_rejected(self, tenant, tenant_b, latte):
        with pytest.raises(NotFoundError):
            OrderService.create_order(tenant_b, [{"menu_item": latte}])

    def test_empty_order_is_rejected(self, tenant):
        with pytest.raises(InvalidOperationError):
            OrderService.create_order(tenant, [])

    def test_zero_quantity_is_rejected(self, tenant, latte):
        with pytest.raises(InvalidOperationError):
            OrderService.create_order(tenant, [{"menu_item": latte, "quantity": 0}])

    def test_created_in_process_deducts_immediately(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 1), status=Order.OrderStatus.PROCESS)

        assert order.status == Order.OrderStatus.PROCESS
        assert order.stock_deducted is True
        assert stock_of(coffee_beans) == Decimal("980")

    def test_created_paid_is_completed_and_settled(self, tenant, latte, coffee_beans):
        order = place(
            tenant, (latte, 1),
            payment_status=Order.PaymentStatus.PAID, payment_method="qris",
        )

        assert order.status == Order.OrderStatus.DONE
        assert order.payment_status == Order.PaymentStatus.PAID
        assert order.payment_method == "qris"
        assert order.is_settled is True
        assert order.completed_at is not None
        assert stock_of(coffee_beans) == Decimal("980")


@pytest.mark.django_db
class TestStatusTransitions:
    """Deduction, reversion and transition rules"""

    def test_basic_sale(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 1))

        result = OrderService.update_status(order, Order.OrderStatus.PROCESS)

        assert result.stock_deducted_now is True
        assert stock_of(coffee_beans) == Decimal("980")
        entries = StockHistoryEntry.objects.filter(ingredient=coffee_beans)
        assert entries.count() == 1
        entry = entries.get()
        assert entry.operation_type == StockHistoryEntry.OperationType.OUT
        assert entry.quantity == Decimal("20")
        assert entry.reference_id == order_reference(order)
        assert entry.notes == f"Order {order.order_number}"
        assert order.items.get().locked_cost == Decimal("2.0000")

    def test_deduction_happens_once(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 1))

        OrderService.update_status(order, Order.OrderStatus.PROCESS)
        again = OrderService.update_status(order, Order.OrderStatus.PROCESS)
        OrderService.update_status(order, Order.OrderStatus.SERVED)
        done = OrderService.update_status(order, Order.OrderStatus.DONE)

        assert again.stock_deducted_now is False
        assert done.stock_deducted_now is False
        assert stock_of(coffee_beans) == Decimal("980")
        assert StockHistoryEntry.objects.filter(ingredient=coffee_beans).count() == 1

    def test_skipping_straight_to_done_deducts(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 3))

        OrderService.update_status(order, Order.OrderStatus.DONE)

        assert stock_of(coffee_beans) == Decimal("940")

    def test_bundle_deducts_each_component(self, tenant, breakfast_set, coffee_beans, milk, gas):
        order = place(tenant, (breakfast_set, 2))

        OrderService.update_status(order, Order.OrderStatus.PROCESS)

        # per bundle: 20 + 2 × 18 beans, 150 milk, 2 gas (non-physical)
        assert stock_of(coffee_beans) == Decimal("888")
        assert stock_of(milk) == Decimal("4700")
        assert stock_of(gas) == Decimal("0")
        assert not StockHistoryEntry.objects.filter(ingredient=gas).exists()

    def test_bundle_matches_standalone_components(
        self, tenant, breakfast_set, milk_latte, americano, coffee_beans, milk
    ):
        bundle_order = place(tenant, (breakfast_set, 1))
        OrderService.update_status(bundle_order, Order.OrderStatus.PROCESS)
        after_bundle = (stock_of(coffee_beans), stock_of(milk))
        OrderService.cancel_order(bundle_order)

        standalone = place(tenant, (milk_latte, 1), (americano, 2))
        OrderService.update_status(standalone, Order.OrderStatus.PROCESS)

        assert (stock_of(coffee_beans), stock_of(milk)) == after_bundle

    def test_item_without_recipe_deducts_nothing(self, tenant, mineral_water):
        order = place(tenant, (mineral_water, 4))

        result = OrderService.update_status(order, Order.OrderStatus.PROCESS)

        assert result.order.stock_deducted is True
        assert not StockHistoryEntry.objects.exists()

    def test_process_then_cancel_restores_stock(self, tenant, milk_latte, coffee_beans, milk):
        order = place(tenant, (milk_latte, 2))
        OrderService.update_status(order, Order.OrderStatus.PROCESS)

        result = OrderService.cancel_order(order, reason="Customer left")

        assert result.stock_reverted_now is True
        assert stock_of(coffee_beans) == Decimal("1000")
        assert stock_of(milk) == Decimal("5000")
        cancelled = Order.objects.get(pk=order.pk)
        assert cancelled.status == Order.OrderStatus.CANCEL
        assert cancelled.stock_deducted is False
        assert cancelled.cancellation_reason == "Customer left"
        reverted = StockHistoryEntry.objects.filter(
            ingredient=coffee_beans, operation_type=StockHistoryEntry.OperationType.IN
        ).get()
        assert reverted.notes == f"Reverted: Order {order.order_number} (Customer left)"

    def test_cancelling_unprocessed_order_moves_no_stock(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 1))

        result = OrderService.cancel_order(order)

        assert result.stock_reverted_now is False
        assert not StockHistoryEntry.objects.exists()

    def test_cancel_records_user(self, tenant, latte, cashier):
        order = place(tenant, (latte, 1))

        result = OrderService.cancel_order(order, user=cashier)

        assert result.order.cancelled_by == cashier

    def test_cancellation_reverts_what_was_deducted(self, tenant, latte, coffee_beans):
        """Recipe edits after processing do not change what a cancel returns."""
        order = place(tenant, (latte, 1))
        OrderService.update_status(order, Order.OrderStatus.PROCESS)
        latte.recipe.items.update(quantity=Decimal("35"))

        OrderService.cancel_order(order)

        assert stock_of(coffee_beans) == Decimal("1000")

    def test_done_order_cannot_be_cancelled(self, tenant, latte):
        order = place(tenant, (latte, 1))
        OrderService.update_status(order, Order.OrderStatus.DONE)

        with pytest.raises(InvalidTransitionError, match="Cannot transition order from done to cancel."):
            OrderService.cancel_order(order)

    def test_cancelled_order_cannot_be_reopened(self, tenant, latte):
        order = place(tenant, (latte, 1))
        OrderService.cancel_order(order)

        with pytest.raises(InvalidTransitionError):
            OrderService.update_status(order, Order.OrderStatus.PROCESS)

    def test_no_going_backwards(self, tenant, latte):
        order = place(tenant, (latte, 1))
        OrderService.update_status(order, Order.OrderStatus.SERVED)

        with pytest.raises(InvalidTransitionError):
            OrderService.update_status(order, Order.OrderStatus.PROCESS)

    @pytest.mark.parametrize("target", ["merged", "archived"])
    def test_merged_and_unknown_targets_are_rejected(self, tenant, latte, target):
        order = place(tenant, (latte, 1))

        with pytest.raises(InvalidTransitionError):
            OrderService.update_status(order, target)

    def test_strict_shortage_rolls_back_every_deduction(
        self, tenant, milk_latte, coffee_beans, milk, strict_stock
    ):
        Ingredient.objects.filter(pk=milk.pk).update(stock_quantity=Decimal("100"))
        order = place(tenant, (milk_latte, 1))

        with pytest.raises(InsufficientStockError):
            OrderService.update_status(order, Order.OrderStatus.PROCESS)

        assert stock_of(coffee_beans) == Decimal("1000")
        assert stock_of(milk) == Decimal("100")
        assert not StockHistoryEntry.objects.exists()
        unchanged = Order.objects.get(pk=order.pk)
        assert unchanged.status == Order.OrderStatus.NEW
        assert unchanged.stock_deducted is False

    def test_permissive_shortage_oversells(self, tenant, latte, coffee_beans):
        Ingredient.objects.filter(pk=coffee_beans.pk).update(stock_quantity=Decimal("10"))
        order = place(tenant, (latte, 1))

        OrderService.update_status(order, Order.OrderStatus.PROCESS)

        assert stock_of(coffee_beans) == Decimal("-10")

    def test_untracked_deduction_is_a_consistency_violation(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 1))
        InventoryService.deduct(coffee_beans, 20, reference_id=order_reference(order))

        with pytest.raises(ConsistencyViolationError):
            OrderService.update_status(order, Order.OrderStatus.PROCESS)

        assert stock_of(coffee_beans) == Decimal("980")
        assert Order.objects.get(pk=order.pk).stock_deducted is False


@pytest.mark.django_db
class TestCostLock:
    """Locked costs never follow later ingredient cost changes"""

    def test_restock_does_not_change_placed_order(self, tenant, latte, coffee_beans):
        order = place(tenant, (latte, 1))

        InventoryService.restock(coffee_beans, 1, 500)

        item = OrderItem.objects.get(order=order)
        assert item.locked_cost == Decimal("2.0000")
        assert Order.objects.get(pk=order.pk).total_cost == Decimal("2.0000")

    def test_locked_cost_cannot_be_rewritten(self, tenant, latte):
        order = place(tenant, (latte, 1))
        item = order.items.get()

        item.locked_cost = Decimal("9.9999")
        with pytest.raises(ValueError):
            item.save()

    def test_other_item_fields_stay_editable(self, tenant, latte):
        order = place(tenant, (latte, 1))
        item = order.items.get()

        item.notes = "less sugar"
        item.save()

        assert OrderItem.objects.get(pk=item.pk).notes == "less sugar"


@pytest.mark.django_db
class TestOrderQueries:

    def test_active_orders_for_phone(self, tenant, latte):
        waiting = place(tenant, (latte, 1), customer_phone="0812-3456-7890")
        done = place(tenant, (latte, 1), customer_phone="081234567890")
        OrderService.update_status(done, Order.OrderStatus.DONE)
        place(tenant, (latte, 1), customer_phone="089999999999")

        orders = list(OrderService.get_active_orders_for_phone("081234567890"))

        assert orders == [waiting]

    def test_blank_phone_has_no_active_orders(self, tenant, latte):
        place(tenant, (latte, 1))

        assert not OrderService.get_active_orders_for_phone("").exists()
