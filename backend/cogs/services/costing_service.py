"""
Cost locking (HPP) for order lines.

At order creation every line gets a locked cost: the cost of ONE unit of the
menu item computed from its recipe (bundles expanded) and the ingredients'
current moving-average unit cost. The value is stored on the order item and
never recomputed, so later restocks or recipe edits cannot change the margin
of an order that was already placed.

    locked_cost = Σ ingredient.unit_cost × required_quantity   (per unit sold)
    total_cost  = Σ locked_cost × line quantity

Non-physical ingredients (gas, packaging labour...) contribute cost even
though they never move stock. Items without a recipe cost 0.

This service only reads; it never touches stock.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from cogs.services.recipe_resolver import RecipeResolver

COST_PRECISION = Decimal("0.0001")


def quantize_cost(value: Decimal) -> Decimal:
    return Decimal(value).quantize(COST_PRECISION, rounding=ROUND_HALF_UP)


@dataclass
class IngredientCostResult:
    """Cost contribution of a single ingredient to one unit of a menu item."""
    ingredient_id: int
    ingredient_name: str
    quantity: Decimal
    unit: str
    unit_cost: Decimal
    extended_cost: Decimal
    is_physical: bool = True


@dataclass
class LineCost:
    """A priced order line with its frozen per-unit cost."""
    menu_item: object
    quantity: int
    unit_price: Decimal
    locked_cost: Decimal
    ingredients: List[IngredientCostResult] = field(default_factory=list)
    notes: str = ""

    @property
    def line_cost(self) -> Decimal:
        return self.locked_cost * self.quantity

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class CostLockResult:
    lines: List[LineCost] = field(default_factory=list)
    total_cost: Decimal = Decimal("0")
    subtotal: Decimal = Decimal("0")


@dataclass
class OrderLineInput:
    """Requested line for a new order. unit_price defaults to the menu price."""
    menu_item: object
    quantity: int = 1
    unit_price: Optional[Decimal] = None
    notes: str = ""


class CostLockingService:
    """
    Computes locked costs for order lines.

    Usage:
        result = CostLockingService().lock_costs([
            OrderLineInput(menu_item=latte, quantity=2),
        ])
        result.lines[0].locked_cost  # per-unit HPP
    """

    def __init__(self, resolver: Optional[RecipeResolver] = None):
        self._resolver = resolver or RecipeResolver()

    def cost_per_unit(self, menu_item):
        """Return (per-unit cost, ingredient breakdown) at current ingredient costs."""
        breakdown = []
        total = Decimal("0")
        for resolved in self._resolver.resolve_per_unit(menu_item):
            ingredient = resolved.ingredient
            extended = ingredient.unit_cost * resolved.required_quantity
            total += extended
            breakdown.append(IngredientCostResult(
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                quantity=resolved.required_quantity,
                unit=ingredient.unit,
                unit_cost=ingredient.unit_cost,
                extended_cost=quantize_cost(extended),
                is_physical=ingredient.is_physical,
            ))
        return quantize_cost(total), breakdown

    def lock_costs(self, lines) -> CostLockResult:
        """
        Compute the locked cost of every requested line.

        Args:
            lines: iterable of OrderLineInput

        Returns:
            CostLockResult with per-line locked_cost, total_cost and subtotal.
        """
        result = CostLockResult()
        for line in lines:
            unit_price = line.unit_price if line.unit_price is not None else line.menu_item.price
            locked_cost, breakdown = self.cost_per_unit(line.menu_item)
            line_cost = LineCost(
                menu_item=line.menu_item,
                quantity=line.quantity,
                unit_price=Decimal(unit_price),
                locked_cost=locked_cost,
                ingredients=breakdown,
                notes=line.notes,
            )
            result.lines.append(line_cost)
            result.total_cost += line_cost.line_cost
            result.subtotal += line_cost.line_total
        return result
