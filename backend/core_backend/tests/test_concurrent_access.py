"""
Concurrent Access Tests

Race conditions on the shared ledgers:
- Stock deductions losing updates
- Double payment of one order (double shift accrual)
- Two open shifts for one tenant

Each thread opens its own database connection, so these tests need a
real transactional database.
"""
import pytest
from decimal import Decimal
from threading import Thread, Barrier

from django.db import connection

from core_backend.exceptions import InvalidTransitionError
from inventory.models import Ingredient, StockHistoryEntry
from inventory.services import InventoryService
from orders.models import Order
from orders.services import OrderService, SideEffectOutcome
from shifts.models import Shift
from shifts.services import ShiftService
from tenant.managers import set_current_tenant


def run_concurrently(count, target):
    """Start `count` threads on target(thread_id) behind a barrier and join them."""
    barrier = Barrier(count)

    def worker(thread_id):
        try:
            barrier.wait()
            target(thread_id)
        finally:
            connection.close()

    threads = [Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


@pytest.mark.django_db(transaction=True)
class TestConcurrentStockDeduction:

    def test_parallel_deductions_are_all_applied(self, tenant, coffee_beans):
        """
        Five baristas deduct 30 g of beans at the same time.
        Expected: stock = 1000 - 5 × 30, one history entry each.
        """
        errors = []

        def deduct(thread_id):
            set_current_tenant(tenant)
            try:
                InventoryService.deduct(
                    coffee_beans, Decimal("30"), reference_id=f"thread:{thread_id}"
                )
            except Exception as e:
                errors.append(f"thread_{thread_id}: {e}")

        run_concurrently(5, deduct)

        assert errors == []
        final_stock = Ingredient.all_objects.get(pk=coffee_beans.pk).stock_quantity
        assert final_stock == Decimal("850")
        assert StockHistoryEntry.objects.filter(ingredient=coffee_beans).count() == 5


@pytest.mark.django_db(transaction=True)
class TestConcurrentPayment:

    def test_double_submitted_payment_accrues_once(self, tenant, latte, open_shift):
        """
        The pay button is pressed on three terminals at once.
        Expected: one payment succeeds, the rest are rejected and the shift
        counts the sale once.
        """
        order = OrderService.create_order(
            tenant, [{"menu_item": latte, "quantity": 1}]
        ).order
        results = []
        errors = []

        def pay(thread_id):
            set_current_tenant(tenant)
            try:
                result = OrderService.pay_order(Order.all_objects.get(pk=order.pk))
                results.append(result)
            except InvalidTransitionError as e:
                errors.append(str(e))

        run_concurrently(3, pay)

        assert len(results) == 1, f"Expected one payment, got {len(results)}. Errors: {errors}"
        assert errors == ["Order already paid", "Order already paid"]
        assert results[0].outcome("shift").status == SideEffectOutcome.APPLIED
        shift = Shift.all_objects.get(pk=open_shift.pk)
        assert shift.total_sales == Decimal("25000")
        assert shift.current_cash == Decimal("125000")
        assert Order.all_objects.get(pk=order.pk).is_settled is True


@pytest.mark.django_db(transaction=True)
class TestConcurrentShiftOpening:

    def test_only_one_shift_opens(self, tenant):
        """
        Two cashiers open a shift at the same moment.
        Expected: exactly one open shift, the other request is rejected.
        """
        opened = []
        errors = []

        def open_shift(thread_id):
            set_current_tenant(tenant)
            try:
                opened.append(ShiftService.open_shift(tenant, cashier_name=f"Cashier {thread_id}"))
            except InvalidTransitionError as e:
                errors.append(str(e))

        run_concurrently(4, open_shift)

        assert len(opened) == 1
        assert errors == ["Shift already open"] * 3
        assert Shift.all_objects.filter(tenant=tenant, end_time__isnull=True).count() == 1
