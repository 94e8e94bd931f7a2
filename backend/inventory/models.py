from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import SoftDeleteMixin
from products.models import MenuItem
from tenant.managers import TenantManager, TenantSoftDeleteManager


class Ingredient(SoftDeleteMixin):
    """
    A raw material tracked by the ingredient ledger.

    Stock is kept in the recipe unit (`unit`, e.g. gram). Purchases are made
    in `unit_of_purchase` (e.g. kg) and converted with `conversion_rate`
    (recipe units per purchase unit). `unit_cost` is the moving-average cost
    of one recipe unit.
    """

    class IngredientType(models.TextChoices):
        PHYSICAL = "physical", _("Physical")
        NON_PHYSICAL = "non_physical", _("Non-physical (cost only)")

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='ingredients'
    )
    name = models.CharField(max_length=200)
    ingredient_type = models.CharField(
        max_length=20,
        choices=IngredientType.choices,
        default=IngredientType.PHYSICAL,
        help_text=_("Non-physical ingredients (gas, labour...) add cost but never move stock."),
    )
    stock_quantity = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("0"),
        help_text=_("Current stock in recipe units. Negative means oversold."),
    )
    unit = models.CharField(max_length=50, default="gram", help_text=_("Recipe unit"))
    unit_of_purchase = models.CharField(max_length=50, blank=True)
    conversion_rate = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("1"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Recipe units per purchase unit (e.g. 1000 gram per kg)"),
    )
    unit_cost = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("0"),
        help_text=_("Moving-average cost of one recipe unit"),
    )
    last_purchase_price = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True,
        help_text=_("Price paid per purchase unit on the last restock"),
    )
    last_purchase_date = models.DateTimeField(null=True, blank=True)
    low_stock_threshold = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantSoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Ingredient")
        verbose_name_plural = _("Ingredients")
        ordering = ["name"]
        indexes = [
            models.Index(fields=['tenant', 'is_active'], name='ingredient_tenant_active_idx'),
            models.Index(fields=['tenant', 'ingredient_type'], name='ingredient_tenant_type_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.stock_quantity} {self.unit})"

    @property
    def is_physical(self):
        return self.ingredient_type == self.IngredientType.PHYSICAL

    @property
    def purchase_cost(self):
        """Cost of one purchase unit."""
        return self.unit_cost * self.conversion_rate

    @property
    def is_low_stock(self):
        return self.is_physical and self.stock_quantity <= self.low_stock_threshold


class Recipe(models.Model):
    """
    Defines the recipe for a MenuItem: the ingredient quantities ("gramasi")
    consumed by ONE unit sold.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='recipes'
    )
    menu_item = models.OneToOneField(
        MenuItem,
        on_delete=models.CASCADE,
        related_name="recipe",
        help_text=_("The menu item this recipe is for."),
    )
    name = models.CharField(max_length=200, blank=True)
    ingredients = models.ManyToManyField(
        Ingredient, through="RecipeItem", related_name="recipes"
    )

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Recipe")
        verbose_name_plural = _("Recipes")
        indexes = [
            models.Index(fields=['tenant', 'menu_item'], name='recipe_tenant_menu_item_idx'),
        ]

    def __str__(self):
        return self.name or f"Recipe for {self.menu_item.name}"


class RecipeItem(models.Model):
    """
    An ingredient line of a recipe.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='recipe_items'
    )
    recipe = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="items")
    ingredient = models.ForeignKey(
        Ingredient,
        on_delete=models.PROTECT,
        related_name="recipe_items",
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Quantity of the ingredient (in its recipe unit) per unit sold."),
    )

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Recipe Item")
        verbose_name_plural = _("Recipe Items")
        unique_together = ("recipe", "ingredient")
        indexes = [
            models.Index(fields=['tenant', 'recipe', 'ingredient'], name='recipeitem_ten_rec_ingr_idx'),
        ]

    def __str__(self):
        return f"{self.quantity} {self.ingredient.unit} of {self.ingredient.name}"


class StockHistoryEntry(models.Model):
    """
    Append-only audit trail of every stock movement with before/after
    snapshots. Order reversions are computed from this log.
    """

    class OperationType(models.TextChoices):
        IN = "in", _("Stock In")
        OUT = "out", _("Stock Out")
        OPNAME = "opname", _("Stock Opname")
        RESTOCK = "restock", _("Restock")

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='stock_history_entries'
    )
    ingredient = models.ForeignKey(
        Ingredient,
        on_delete=models.PROTECT,
        related_name="stock_history",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_operations",
    )
    operation_type = models.CharField(max_length=20, choices=OperationType.choices)
    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        help_text=_("Absolute amount moved, in recipe units"),
    )
    previous_quantity = models.DecimalField(max_digits=14, decimal_places=4)
    new_quantity = models.DecimalField(max_digits=14, decimal_places=4)
    previous_unit_cost = models.DecimalField(
        max_digits=14, decimal_places=4, null=True, blank=True
    )
    new_unit_cost = models.DecimalField(
        max_digits=14, decimal_places=4, null=True, blank=True
    )
    purchase_total = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True
    )
    notes = models.TextField(blank=True)
    reference_id = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text=_("Links related operations, e.g. 'order:<uuid>'"),
    )
    timestamp = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Stock History Entry")
        verbose_name_plural = _("Stock History Entries")
        ordering = ['-timestamp', '-id']
        indexes = [
            models.Index(fields=['tenant', 'ingredient', 'timestamp'], name='stock_hist_ten_ingr_time_idx'),
            models.Index(fields=['tenant', 'operation_type'], name='stock_hist_ten_operation_idx'),
            models.Index(fields=['tenant', 'reference_id'], name='stock_hist_ten_reference_idx'),
        ]

    def __str__(self):
        return f"{self.operation_type}: {self.ingredient.name} ({self.quantity}) - {self.timestamp:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError("Stock history entries are append-only and cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Stock history entries are append-only and cannot be deleted")
