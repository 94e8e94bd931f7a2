from decimal import Decimal
import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from core_backend.exceptions import (
    InvalidOperationError,
    InvalidTransitionError,
    NotFoundError,
)
from core_backend.infrastructure.stats import get_stats_collector
from .models import CashTransaction, Debt, PaymentMethod, Shift, ShiftAdjustment

logger = logging.getLogger(__name__)


class ShiftService:
    """
    Cash-drawer shift ledger.

    All balance changes are F() updates on a row locked with
    select_for_update, so concurrent sales never overwrite each other.
    """

    @staticmethod
    def get_active_shift(tenant_id, lock=False):
        """
        Return the open shift of the tenant, or None.

        The unique constraint allows only one open shift. If several are found
        anyway (rows written around the constraint) the most recent one wins
        and the conflict is logged as an error.
        """
        qs = Shift.all_objects.filter(
            tenant_id=tenant_id, end_time__isnull=True
        ).order_by('-start_time', '-id')
        if lock:
            qs = qs.select_for_update()
        shifts = list(qs[:2])
        if not shifts:
            return None
        if len(shifts) > 1:
            logger.error(
                f"Multiple open shifts for tenant {tenant_id}; using most recent shift {shifts[0].pk}"
            )
            get_stats_collector().increment("shifts.open_conflicts")
        return shifts[0]

    @staticmethod
    def open_shift(tenant, cashier=None, starting_cash=Decimal("0"), cashier_name=""):
        """
        Open a shift. Rejected with InvalidTransitionError while another shift
        of the tenant is open; the database constraint decides races.
        """
        starting_cash = Decimal(str(starting_cash))
        if starting_cash < 0:
            raise InvalidOperationError("Starting cash cannot be negative")
        if not cashier_name and cashier is not None:
            cashier_name = cashier.get_full_name() or cashier.get_username()

        try:
            with transaction.atomic():
                shift = Shift.all_objects.create(
                    tenant=tenant,
                    cashier=cashier,
                    cashier_name=cashier_name,
                    starting_cash=starting_cash,
                    current_cash=starting_cash,
                )
        except IntegrityError:
            raise InvalidTransitionError("Shift already open")

        logger.info(f"Shift {shift.pk} opened by {cashier_name or 'unknown'} with {starting_cash}")
        return shift

    @staticmethod
    @transaction.atomic
    def close_shift(tenant_id, ending_cash, notes=""):
        """
        Close the open shift: expected cash is the running drawer balance and
        difference = ending_cash - expected_cash.
        """
        shift = ShiftService.get_active_shift(tenant_id, lock=True)
        if shift is None:
            raise NotFoundError("Shift", message="No open shift to close")

        ending_cash = Decimal(str(ending_cash))
        shift.expected_cash = shift.current_cash
        shift.ending_cash = ending_cash
        shift.difference = ending_cash - shift.current_cash
        shift.end_time = timezone.now()
        shift.status = Shift.Status.CLOSED
        if notes:
            shift.notes = notes
        shift.save(update_fields=[
            'expected_cash', 'ending_cash', 'difference', 'end_time', 'status', 'notes'
        ])

        if shift.difference != 0:
            logger.warning(f"Shift {shift.pk} closed with cash difference {shift.difference}")
        else:
            logger.info(f"Shift {shift.pk} closed, drawer balanced")
        return shift

    @staticmethod
    def get_balance(tenant_id):
        """Running totals of the open shift, or None when no shift is open."""
        shift = ShiftService.get_active_shift(tenant_id)
        if shift is None:
            return None
        return {
            'shift_id': shift.pk,
            'starting_cash': shift.starting_cash,
            'current_cash': shift.current_cash,
            'current_non_cash': shift.current_non_cash,
            'cash_sales': shift.cash_sales,
            'non_cash_sales': shift.non_cash_sales,
            'total_sales': shift.total_sales,
            'adjustments': shift.current_cash - shift.starting_cash - shift.cash_sales,
        }

    @staticmethod
    def get_activities(tenant_id, shift=None, limit=100):
        """
        Drawer activity of a shift, newest first: paid orders accrued to it
        and its cash adjustments. Defaults to the open shift; returns an
        empty list when there is none.
        """
        from orders.models import Order

        if shift is None:
            shift = ShiftService.get_active_shift(tenant_id)
            if shift is None:
                return []

        activities = []
        orders = Order.all_objects.filter(tenant_id=tenant_id, shift=shift).only(
            'id', 'order_number', 'total', 'payment_method', 'payment_status',
            'created_at', 'completed_at',
        )
        for order in orders:
            activities.append({
                'type': 'sale',
                'timestamp': order.completed_at or order.created_at,
                'amount': order.total,
                'payment_method': order.payment_method,
                'description': f"Order {order.order_number} ({order.payment_status})",
                'reference_id': f"order:{order.pk}",
            })
        for adjustment in ShiftAdjustment.all_objects.filter(tenant_id=tenant_id, shift=shift):
            activities.append({
                'type': 'adjustment',
                'timestamp': adjustment.timestamp,
                'amount': adjustment.amount,
                'payment_method': PaymentMethod.CASH,
                'description': adjustment.description,
                'reference_id': adjustment.reference_id,
            })

        activities.sort(key=lambda entry: entry['timestamp'], reverse=True)
        return activities[:limit]

    @staticmethod
    def _sale_updates(amount, payment_method, sign=1):
        amount = amount * sign
        if payment_method == PaymentMethod.CASH:
            return {
                'cash_sales': F('cash_sales') + amount,
                'current_cash': F('current_cash') + amount,
                'total_sales': F('total_sales') + amount,
            }
        return {
            'non_cash_sales': F('non_cash_sales') + amount,
            'current_non_cash': F('current_non_cash') + amount,
            'total_sales': F('total_sales') + amount,
        }

    @staticmethod
    @transaction.atomic
    def accrue_sale(order, amount=None, payment_method=None):
        """
        Add a paid order to the open shift and link the order to it.

        Returns:
            The updated Shift, or None when no shift is open.
        """
        shift = ShiftService.get_active_shift(order.tenant_id, lock=True)
        if shift is None:
            logger.warning(f"No open shift; sale of order {order.order_number} not accrued")
            return None

        amount = order.total if amount is None else Decimal(str(amount))
        payment_method = payment_method or order.payment_method or PaymentMethod.CASH

        Shift.all_objects.filter(pk=shift.pk).update(
            **ShiftService._sale_updates(amount, payment_method)
        )
        type(order).all_objects.filter(pk=order.pk).update(shift=shift)
        order.shift = shift
        shift.refresh_from_db()
        return shift

    @staticmethod
    @transaction.atomic
    def reverse_sale(order):
        """
        Take a refunded order back out of the shift it was accrued to, or the
        open shift when that one has been closed already. An order that never
        reached a shift has nothing to reverse.
        """
        if not order.shift_id:
            return None
        shift = (
            Shift.all_objects.select_for_update()
            .filter(pk=order.shift_id, end_time__isnull=True)
            .first()
        )
        if shift is None:
            shift = ShiftService.get_active_shift(order.tenant_id, lock=True)
        if shift is None:
            logger.warning(f"No open shift; refund of order {order.order_number} not recorded")
            return None

        payment_method = order.payment_method or PaymentMethod.CASH
        Shift.all_objects.filter(pk=shift.pk).update(
            **ShiftService._sale_updates(order.total, payment_method, sign=-1)
        )
        shift.refresh_from_db()
        logger.info(f"Reversed sale of order {order.order_number} on shift {shift.pk}")
        return shift

    @staticmethod
    @transaction.atomic
    def record_adjustment(tenant_id, amount, description, user=None, reference_id=""):
        """
        Post a signed cash adjustment to the open shift.

        Returns:
            The ShiftAdjustment, or None when no shift is open.
        """
        amount = Decimal(str(amount))
        shift = ShiftService.get_active_shift(tenant_id, lock=True)
        if shift is None:
            logger.warning(f"No open shift; adjustment '{description}' ({amount}) not recorded")
            return None

        adjustment = ShiftAdjustment.all_objects.create(
            tenant_id=tenant_id,
            shift=shift,
            amount=amount,
            description=description,
            reference_id=reference_id,
            created_by=user,
        )
        Shift.all_objects.filter(pk=shift.pk).update(current_cash=F('current_cash') + amount)
        return adjustment


class CashTransactionService:

    @staticmethod
    @transaction.atomic
    def record(tenant_id, transaction_type, amount, payment_method=PaymentMethod.CASH,
               category="", description="", user=None):
        """
        Record money in/out. Cash movements also adjust the open drawer.
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise InvalidOperationError("Amount must be positive")

        cash_transaction = CashTransaction.all_objects.create(
            tenant_id=tenant_id,
            transaction_type=transaction_type,
            amount=amount,
            payment_method=payment_method,
            category=category,
            description=description,
            created_by=user,
        )

        if payment_method == PaymentMethod.CASH:
            label = "Cash In" if transaction_type == CashTransaction.TransactionType.IN else "Cash Out"
            adjustment = ShiftService.record_adjustment(
                tenant_id,
                cash_transaction.signed_amount,
                f"{label}: {description or category or '-'}",
                user=user,
                reference_id=f"cash_transaction:{cash_transaction.pk}",
            )
            if adjustment is not None:
                cash_transaction.shift = adjustment.shift
                cash_transaction.save(update_fields=['shift'])
        return cash_transaction

    @staticmethod
    @transaction.atomic
    def delete(cash_transaction, user=None):
        """Delete a transaction, reverting its drawer adjustment."""
        if cash_transaction.payment_method == PaymentMethod.CASH:
            ShiftService.record_adjustment(
                cash_transaction.tenant_id,
                -cash_transaction.signed_amount,
                f"Reversal: {cash_transaction.description or cash_transaction.category or '-'}",
                user=user,
                reference_id=f"cash_transaction:{cash_transaction.pk}",
            )
        cash_transaction.delete()


class DebtService:

    @staticmethod
    @transaction.atomic
    def create_debt(tenant_id, debt_type, person_name, amount, description="", user=None):
        """
        Record a debt. A kasbon is paid out of the drawer, so it posts
        -amount to the open shift.
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise InvalidOperationError("Amount must be positive")

        debt = Debt.all_objects.create(
            tenant_id=tenant_id,
            debt_type=debt_type,
            person_name=person_name,
            amount=amount,
            description=description,
            created_by=user,
        )
        if debt_type == Debt.DebtType.KASBON:
            ShiftService.record_adjustment(
                tenant_id,
                -amount,
                f"Kasbon: {person_name}",
                user=user,
                reference_id=f"debt:{debt.pk}",
            )
        return debt

    @staticmethod
    @transaction.atomic
    def settle_debt(debt, user=None):
        """Mark a pending debt settled and post the repayment to the drawer."""
        claimed = Debt.all_objects.filter(
            pk=debt.pk, status=Debt.Status.PENDING
        ).update(status=Debt.Status.SETTLED, settled_at=timezone.now())
        if not claimed:
            raise InvalidTransitionError("Debt already settled")

        debt.refresh_from_db()
        ShiftService.record_adjustment(
            debt.tenant_id,
            debt.amount,
            f"Debt settlement ({debt.debt_type}): {debt.person_name}",
            user=user,
            reference_id=f"debt:{debt.pk}",
        )
        return debt
