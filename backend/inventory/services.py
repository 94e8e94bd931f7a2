from decimal import Decimal, ROUND_HALF_UP
import logging

from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from core_backend.exceptions import (
    InsufficientStockError,
    InvalidOperationError,
    NotFoundError,
)
from core_backend.infrastructure.stats import get_stats_collector
from settings.models import BusinessSettings, StockPolicy
from .models import Ingredient, StockHistoryEntry

logger = logging.getLogger(__name__)

COST_PRECISION = Decimal("0.0001")
MONEY_PRECISION = Decimal("0.01")


def order_reference(order):
    """Reference id linking stock history entries to an order."""
    return f"order:{order.pk}"


class InventoryService:
    """
    Ingredient ledger.

    Every mutation runs inside a transaction, takes a row lock on the
    ingredient (select_for_update) and applies the change with an F()
    expression, so concurrent deductions can never lose an update. The
    history entry is written in the same transaction with snapshots taken
    under the lock.
    """

    @staticmethod
    def _lock_ingredient(ingredient):
        try:
            return Ingredient.all_objects.select_for_update().get(
                pk=ingredient.pk, tenant_id=ingredient.tenant_id
            )
        except Ingredient.DoesNotExist:
            raise NotFoundError("Ingredient", ingredient.pk)

    @staticmethod
    def _log_stock_operation(
        ingredient: Ingredient,
        operation_type: str,
        quantity: Decimal,
        previous_quantity: Decimal,
        new_quantity: Decimal,
        user=None,
        notes: str = "",
        reference_id: str = "",
        previous_unit_cost=None,
        new_unit_cost=None,
        purchase_total=None,
    ):
        """
        Append a StockHistoryEntry. Runs inside the caller's transaction, so a
        failure here rolls back the stock change as well.
        """
        return StockHistoryEntry.all_objects.create(
            tenant_id=ingredient.tenant_id,
            ingredient=ingredient,
            user=user,
            operation_type=operation_type,
            quantity=quantity,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            previous_unit_cost=previous_unit_cost,
            new_unit_cost=new_unit_cost,
            purchase_total=purchase_total,
            notes=notes,
            reference_id=reference_id,
        )

    @staticmethod
    def get_stock_policy(tenant_id):
        business_settings, _ = BusinessSettings.objects.get_or_create(tenant_id=tenant_id)
        return business_settings.effective_stock_policy

    @staticmethod
    @transaction.atomic
    def deduct(
        ingredient: Ingredient,
        quantity,
        notes: str = "",
        reference_id: str = "",
        user=None,
        policy: str = None,
    ):
        """
        Remove `quantity` recipe units from stock.

        Non-physical ingredients are skipped (returns None, no history).
        Under the strict policy a deduction larger than the stock raises
        InsufficientStockError; under the permissive policy stock goes
        negative and the oversell is logged.

        Returns:
            The new stock quantity, or None when skipped.
        """
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            raise InvalidOperationError("Deduction quantity must be positive")

        locked = InventoryService._lock_ingredient(ingredient)
        if not locked.is_physical:
            return None

        previous_quantity = locked.stock_quantity
        if previous_quantity < quantity:
            if policy is None:
                policy = InventoryService.get_stock_policy(locked.tenant_id)
            if policy == StockPolicy.STRICT:
                raise InsufficientStockError(locked, quantity, previous_quantity)
            logger.warning(
                f"Oversold {locked.name}: stock {previous_quantity}, deducting {quantity} "
                f"(ref={reference_id or '-'})"
            )
            get_stats_collector().increment("inventory.oversold")

        Ingredient.all_objects.filter(pk=locked.pk).update(
            stock_quantity=F('stock_quantity') - quantity
        )
        locked.refresh_from_db(fields=['stock_quantity'])

        InventoryService._log_stock_operation(
            ingredient=locked,
            operation_type=StockHistoryEntry.OperationType.OUT,
            quantity=quantity,
            previous_quantity=previous_quantity,
            new_quantity=locked.stock_quantity,
            user=user,
            notes=notes,
            reference_id=reference_id,
        )
        get_stats_collector().increment("inventory.deductions")

        ingredient.stock_quantity = locked.stock_quantity
        return locked.stock_quantity

    @staticmethod
    @transaction.atomic
    def revert(
        ingredient: Ingredient,
        quantity,
        notes: str = "",
        reference_id: str = "",
        user=None,
    ):
        """
        Put `quantity` recipe units back into stock (compensates a deduction).
        Non-physical ingredients are skipped.
        """
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            raise InvalidOperationError("Reversion quantity must be positive")

        locked = InventoryService._lock_ingredient(ingredient)
        if not locked.is_physical:
            return None

        previous_quantity = locked.stock_quantity
        Ingredient.all_objects.filter(pk=locked.pk).update(
            stock_quantity=F('stock_quantity') + quantity
        )
        locked.refresh_from_db(fields=['stock_quantity'])

        InventoryService._log_stock_operation(
            ingredient=locked,
            operation_type=StockHistoryEntry.OperationType.IN,
            quantity=quantity,
            previous_quantity=previous_quantity,
            new_quantity=locked.stock_quantity,
            user=user,
            notes=notes,
            reference_id=reference_id,
        )
        get_stats_collector().increment("inventory.reversions")

        ingredient.stock_quantity = locked.stock_quantity
        return locked.stock_quantity

    @staticmethod
    @transaction.atomic
    def restock(
        ingredient: Ingredient,
        purchase_quantity,
        purchase_total,
        conversion_rate=None,
        user=None,
        notes: str = "",
    ):
        """
        Receive a purchase and recompute the moving-average unit cost.

            added    = purchase_quantity × conversion_rate
            new_cost = (old_stock × old_cost + purchase_total) / (old_stock + added)

        When old_stock + added is not positive (stock was deeply oversold)
        the new cost is purchase_total / added.

        Args:
            purchase_quantity: amount bought, in purchase units
            purchase_total: total price paid for the purchase
            conversion_rate: recipe units per purchase unit; defaults to the
                ingredient's current rate and is stored on the ingredient

        Returns:
            The refreshed Ingredient.
        """
        purchase_quantity = Decimal(str(purchase_quantity))
        purchase_total = Decimal(str(purchase_total))
        if purchase_quantity <= 0:
            raise InvalidOperationError("Purchase quantity must be positive")
        if purchase_total < 0:
            raise InvalidOperationError("Purchase total cannot be negative")

        locked = InventoryService._lock_ingredient(ingredient)
        if not locked.is_physical:
            raise InvalidOperationError(
                f"Cannot restock non-physical ingredient '{locked.name}'"
            )

        rate = Decimal(str(conversion_rate)) if conversion_rate is not None else locked.conversion_rate
        if not rate or rate <= 0:
            rate = Decimal("1")

        added = purchase_quantity * rate
        previous_quantity = locked.stock_quantity
        previous_cost = locked.unit_cost
        new_stock = previous_quantity + added

        if new_stock <= 0:
            new_cost = purchase_total / added
        else:
            new_cost = (previous_quantity * previous_cost + purchase_total) / new_stock
        new_cost = new_cost.quantize(COST_PRECISION, rounding=ROUND_HALF_UP)
        last_purchase_price = (purchase_total / purchase_quantity).quantize(
            MONEY_PRECISION, rounding=ROUND_HALF_UP
        )

        Ingredient.all_objects.filter(pk=locked.pk).update(
            stock_quantity=F('stock_quantity') + added,
            unit_cost=new_cost,
            conversion_rate=rate,
            last_purchase_price=last_purchase_price,
            last_purchase_date=timezone.now(),
        )
        locked.refresh_from_db()

        if not notes:
            unit_label = locked.unit_of_purchase or "unit"
            notes = f"Restock: {purchase_quantity} {unit_label} x {rate} {locked.unit} @ {purchase_total}"

        InventoryService._log_stock_operation(
            ingredient=locked,
            operation_type=StockHistoryEntry.OperationType.RESTOCK,
            quantity=added,
            previous_quantity=previous_quantity,
            new_quantity=locked.stock_quantity,
            user=user,
            notes=notes,
            previous_unit_cost=previous_cost,
            new_unit_cost=locked.unit_cost,
            purchase_total=purchase_total,
        )
        logger.info(
            f"Restocked {locked.name}: +{added} {locked.unit}, "
            f"unit cost {previous_cost} -> {locked.unit_cost}"
        )
        return locked

    @staticmethod
    @transaction.atomic
    def manual_adjust(ingredient: Ingredient, delta, notes: str = "", user=None):
        """
        Manual stock correction. Positive deltas are logged as 'in', negative
        ones as 'opname' (stock count correction).
        """
        delta = Decimal(str(delta))
        if delta == 0:
            raise InvalidOperationError("Adjustment cannot be zero")

        locked = InventoryService._lock_ingredient(ingredient)
        if not locked.is_physical:
            raise InvalidOperationError(
                f"Cannot adjust stock of non-physical ingredient '{locked.name}'"
            )

        previous_quantity = locked.stock_quantity
        if delta < 0 and previous_quantity + delta < 0:
            if InventoryService.get_stock_policy(locked.tenant_id) == StockPolicy.STRICT:
                raise InsufficientStockError(locked, -delta, previous_quantity)

        Ingredient.all_objects.filter(pk=locked.pk).update(
            stock_quantity=F('stock_quantity') + delta
        )
        locked.refresh_from_db(fields=['stock_quantity'])

        operation_type = (
            StockHistoryEntry.OperationType.IN if delta > 0
            else StockHistoryEntry.OperationType.OPNAME
        )
        InventoryService._log_stock_operation(
            ingredient=locked,
            operation_type=operation_type,
            quantity=abs(delta),
            previous_quantity=previous_quantity,
            new_quantity=locked.stock_quantity,
            user=user,
            notes=notes or "Manual Adjustment",
        )

        ingredient.stock_quantity = locked.stock_quantity
        return locked.stock_quantity

    # ------------------------------------------------------------------
    # Order-level operations
    # ------------------------------------------------------------------

    @staticmethod
    def collect_order_requirements(order):
        """
        Sum the ingredient requirements of every line of `order`.

        Returns:
            list of (Ingredient, Decimal) ordered by ingredient id, so that
            concurrent orders always lock ingredient rows in the same order.
        """
        from cogs.services.recipe_resolver import RecipeResolver
        from orders.models import OrderItem

        resolver = RecipeResolver()
        totals = {}
        ingredients = {}
        items = OrderItem.all_objects.filter(order_id=order.pk)
        for item in items.select_related('menu_item').order_by('id'):
            if item.menu_item is None:
                continue
            for resolved in resolver.resolve_ingredients(item.menu_item, item.quantity):
                ingredient = resolved.ingredient
                ingredients[ingredient.pk] = ingredient
                totals[ingredient.pk] = totals.get(ingredient.pk, Decimal("0")) + resolved.required_quantity
        return [(ingredients[pk], totals[pk]) for pk in sorted(totals)]

    @staticmethod
    @transaction.atomic
    def deduct_order_ingredients(order, user=None):
        """
        Deduct every physical ingredient consumed by `order`.

        Runs in one transaction: any failure (strict-policy shortage, missing
        row, storage error) rolls back all deductions of this call.

        Returns:
            list of (ingredient, quantity) actually deducted.
        """
        reference_id = order_reference(order)
        policy = InventoryService.get_stock_policy(order.tenant_id)
        deducted = []
        for ingredient, quantity in InventoryService.collect_order_requirements(order):
            if not ingredient.is_physical or quantity <= 0:
                continue
            InventoryService.deduct(
                ingredient,
                quantity,
                notes=f"Order {order.order_number}",
                reference_id=reference_id,
                user=user,
                policy=policy,
            )
            deducted.append((ingredient, quantity))
        logger.info(
            f"Deducted {len(deducted)} ingredient(s) for order {order.order_number}"
        )
        return deducted

    @staticmethod
    def get_outstanding_deductions(order):
        """
        Net quantity still deducted for `order` per ingredient, from the log:
        Σ out − Σ in for the order's reference id.
        """
        rows = (
            StockHistoryEntry.all_objects
            .filter(tenant_id=order.tenant_id, reference_id=order_reference(order))
            .values('ingredient_id')
            .annotate(
                deducted=Sum('quantity', filter=Q(operation_type=StockHistoryEntry.OperationType.OUT)),
                reverted=Sum('quantity', filter=Q(operation_type=StockHistoryEntry.OperationType.IN)),
            )
            .order_by('ingredient_id')
        )
        outstanding = {}
        for row in rows:
            net = (row['deducted'] or Decimal("0")) - (row['reverted'] or Decimal("0"))
            if net > 0:
                outstanding[row['ingredient_id']] = net
        return outstanding

    @staticmethod
    @transaction.atomic
    def revert_order_ingredients(order, user=None, reason: str = ""):
        """
        Return to stock exactly what was deducted for `order` and not yet
        reverted. Calling it again is a no-op.

        Returns:
            list of (ingredient, quantity) reverted.
        """
        outstanding = InventoryService.get_outstanding_deductions(order)
        if not outstanding:
            return []

        ingredients = Ingredient.all_objects.in_bulk(list(outstanding))
        notes = f"Reverted: Order {order.order_number}"
        if reason:
            notes = f"{notes} ({reason})"

        reverted = []
        for ingredient_id in sorted(outstanding):
            ingredient = ingredients[ingredient_id]
            quantity = outstanding[ingredient_id]
            InventoryService.revert(
                ingredient,
                quantity,
                notes=notes,
                reference_id=order_reference(order),
                user=user,
            )
            reverted.append((ingredient, quantity))
        logger.info(
            f"Reverted {len(reverted)} ingredient(s) for order {order.order_number}"
        )
        return reverted

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @staticmethod
    def get_history(ingredient, limit=None):
        qs = StockHistoryEntry.objects.filter(ingredient=ingredient).select_related('user')
        if limit:
            qs = qs[:limit]
        return qs

    @staticmethod
    def get_top_usage(limit=5, since=None):
        """
        Ingredients ranked by total quantity consumed ('out' entries) for the
        current tenant.
        """
        qs = StockHistoryEntry.objects.filter(
            operation_type=StockHistoryEntry.OperationType.OUT
        )
        if since is not None:
            qs = qs.filter(timestamp__gte=since)
        return list(
            qs.values('ingredient_id', 'ingredient__name', 'ingredient__unit')
            .annotate(total_quantity=Sum('quantity'), usage_count=Count('id'))
            .order_by('-total_quantity', 'ingredient_id')[:limit]
        )

    @staticmethod
    def get_low_stock_ingredients():
        return Ingredient.objects.filter(
            ingredient_type=Ingredient.IngredientType.PHYSICAL,
            stock_quantity__lte=F('low_stock_threshold'),
        )
