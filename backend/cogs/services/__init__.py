"""
COGS Services.

- RecipeResolver: menu item → ingredient requirements (bundle expansion)
- CostLockingService: frozen per-line cost (HPP) at order creation
"""
from cogs.services.recipe_resolver import RecipeResolver, ResolvedIngredient
from cogs.services.costing_service import (
    CostLockingService,
    CostLockResult,
    LineCost,
    IngredientCostResult,
    OrderLineInput,
)

__all__ = [
    'RecipeResolver',
    'ResolvedIngredient',
    'CostLockingService',
    'CostLockResult',
    'LineCost',
    'IngredientCostResult',
    'OrderLineInput',
]
