"""
Order settlement.

Two accruals run at most once per order:

- loyalty, on the first done or paid event, guarded by the is_settled flag
- the shift sale, at payment time with the method actually used; the
  payment_status transition under the order row lock guards it

A refund reverses only a sale that reached a shift (order.shift is set).
"""
import logging

from django.db import transaction
from django.utils import timezone

from core_backend.infrastructure.stats import get_stats_collector
from customers.services import LoyaltyService
from settings.models import BusinessSettings
from shifts.services import ShiftService
from orders.models import Order
from .results import SideEffectOutcome

logger = logging.getLogger(__name__)

SHIFT = "shift"
LOYALTY = "loyalty"
SETTLEMENT = "settlement"
SHIFT_REFUND = "shift_refund"
LOYALTY_REFUND = "loyalty_refund"


class SettlementService:

    @staticmethod
    def settle(order):
        """
        Claim the order's settled flag and run loyalty accrual.

        The flag is claimed with a conditional UPDATE, so of any number of
        concurrent or repeated calls exactly one performs the accrual.
        Must run inside the caller's transaction.

        Returns:
            list of SideEffectOutcome
        """
        now = timezone.now()
        claimed = Order.all_objects.filter(pk=order.pk, is_settled=False).update(
            is_settled=True, settled_at=now
        )
        if not claimed:
            logger.debug(f"Order {order.order_number} already settled, skipping loyalty")
            return [SideEffectOutcome(SETTLEMENT, SideEffectOutcome.SKIPPED, "Order already settled")]

        order.is_settled = True
        order.settled_at = now
        get_stats_collector().increment("orders.settled")

        return [
            SettlementService._run_side_effect(LOYALTY, order, SettlementService._award_loyalty),
        ]

    @staticmethod
    def record_payment(order):
        """
        Accrue a just-paid order to the open shift.

        Called once per payment by OrderService.pay_order while it holds the
        order row lock.
        """
        return SettlementService._run_side_effect(SHIFT, order, SettlementService._accrue_shift)

    @staticmethod
    def reverse(order):
        """Outcomes of refunding a paid order: shift reversal, kept loyalty."""
        outcomes = [
            SettlementService._run_side_effect(
                SHIFT_REFUND, order, SettlementService._reverse_shift
            )
        ]
        if order.is_settled:
            outcomes.append(SideEffectOutcome(
                LOYALTY_REFUND, SideEffectOutcome.SKIPPED, "Earned points are kept on refund"
            ))
        return outcomes

    @staticmethod
    def _run_side_effect(name, order, func):
        # Savepoint: a failing side effect leaves the order transaction usable
        try:
            with transaction.atomic():
                return func(order)
        except Exception as e:
            logger.error(
                f"{name} side effect failed for order {order.order_number}: {e}",
                exc_info=True,
            )
            get_stats_collector().increment(f"settlement.{name}.failed")
            return SideEffectOutcome(name, SideEffectOutcome.FAILED, str(e))

    @staticmethod
    def _accrue_shift(order):
        shift = ShiftService.accrue_sale(order)
        if shift is None:
            return SideEffectOutcome(SHIFT, SideEffectOutcome.SKIPPED, "No open shift")
        return SideEffectOutcome(SHIFT, SideEffectOutcome.APPLIED, f"Accrued to shift {shift.pk}")

    @staticmethod
    def _reverse_shift(order):
        if not order.shift_id:
            return SideEffectOutcome(
                SHIFT_REFUND, SideEffectOutcome.SKIPPED, "Sale was not accrued to a shift"
            )
        shift = ShiftService.reverse_sale(order)
        if shift is None:
            return SideEffectOutcome(SHIFT_REFUND, SideEffectOutcome.SKIPPED, "No open shift")
        return SideEffectOutcome(SHIFT_REFUND, SideEffectOutcome.APPLIED, f"Reversed on shift {shift.pk}")

    @staticmethod
    def _award_loyalty(order):
        business_settings = BusinessSettings.for_tenant(order.tenant)
        if not business_settings.loyalty_enabled:
            return SideEffectOutcome(LOYALTY, SideEffectOutcome.SKIPPED, "Loyalty disabled")

        customer = LoyaltyService.resolve_or_create_customer(
            order.tenant_id,
            customer=order.customer,
            name=order.customer_name,
            phone=order.customer_phone,
        )
        if customer is None:
            return SideEffectOutcome(LOYALTY, SideEffectOutcome.SKIPPED, "Order has no customer")

        if order.customer_id != customer.pk:
            Order.all_objects.filter(pk=order.pk).update(customer=customer)
            order.customer = customer

        award = LoyaltyService.award_points(customer, order.total, business_settings)
        return SideEffectOutcome(
            LOYALTY,
            SideEffectOutcome.APPLIED,
            f"+{award.points_earned} points ({award.tier_before} -> {award.tier_after})",
        )
