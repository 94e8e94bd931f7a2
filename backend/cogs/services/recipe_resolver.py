"""
Recipe resolution.

Maps a menu item to the ingredients consumed when it is sold:

- Regular item → its recipe lines, scaled by the quantity sold.
- Bundle → every component's recipe, scaled by component quantity × quantity
  sold, unioned and summed per ingredient.
- No recipe → empty list (nothing to deduct, zero cost).

Bundles are exactly one level deep. Catalog validation rejects nested bundles
on save; resolution still guards against legacy rows.
"""
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from cogs.exceptions import BundleNestingError
from inventory.models import Ingredient, RecipeItem
from products.models import BundleComponent


@dataclass
class ResolvedIngredient:
    """One ingredient requirement after recipe and bundle expansion."""
    ingredient: Ingredient
    required_quantity: Decimal


class RecipeResolver:
    """
    Resolves menu items into ingredient requirements.

    Reads go through the unfiltered managers scoped by the menu item's own
    tenant, so resolution works the same inside and outside a request.
    """

    def resolve_ingredients(self, menu_item, quantity=1) -> List[ResolvedIngredient]:
        """
        Return the ingredient requirements for `quantity` units of `menu_item`.
        """
        quantity = Decimal(str(quantity))
        totals = OrderedDict()

        if menu_item.is_bundle:
            components = (
                BundleComponent.all_objects
                .filter(bundle=menu_item, tenant_id=menu_item.tenant_id)
                .select_related('product')
                .order_by('id')
            )
            for component in components:
                if component.product.is_bundle:
                    raise BundleNestingError(menu_item, component.product)
                self._accumulate(
                    totals, component.product, quantity * component.quantity
                )
        else:
            self._accumulate(totals, menu_item, quantity)

        return [
            ResolvedIngredient(ingredient=ingredient, required_quantity=required)
            for ingredient, required in totals.values()
        ]

    def resolve_per_unit(self, menu_item) -> List[ResolvedIngredient]:
        return self.resolve_ingredients(menu_item, 1)

    def _accumulate(self, totals, menu_item, quantity):
        recipe_items = (
            RecipeItem.all_objects
            .filter(recipe__menu_item=menu_item, tenant_id=menu_item.tenant_id)
            .select_related('ingredient')
            .order_by('id')
        )
        for recipe_item in recipe_items:
            required = recipe_item.quantity * quantity
            entry = totals.get(recipe_item.ingredient_id)
            if entry is None:
                totals[recipe_item.ingredient_id] = (recipe_item.ingredient, required)
            else:
                totals[recipe_item.ingredient_id] = (entry[0], entry[1] + required)
