from django.contrib import admin
from .models import Ingredient, Recipe, RecipeItem, StockHistoryEntry


@admin.register(Ingredient)
class IngredientAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "ingredient_type", "stock_quantity", "unit", "unit_cost", "is_active")
    list_filter = ("ingredient_type", "is_active", "tenant")
    search_fields = ("name",)
    # Stock and cost only move through InventoryService
    readonly_fields = ("stock_quantity", "unit_cost", "last_purchase_price", "last_purchase_date")

    def get_queryset(self, request):
        """Show all tenants in Django admin"""
        return Ingredient.all_objects.select_related("tenant")


class RecipeItemInline(admin.TabularInline):
    model = RecipeItem
    extra = 1
    fields = ("tenant", "ingredient", "quantity")

    def get_queryset(self, request):
        return RecipeItem.all_objects.select_related("ingredient")


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ("__str__", "menu_item", "tenant")
    inlines = [RecipeItemInline]

    def get_queryset(self, request):
        return Recipe.all_objects.select_related("tenant", "menu_item")


@admin.register(StockHistoryEntry)
class StockHistoryEntryAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "ingredient", "operation_type", "quantity", "previous_quantity", "new_quantity", "reference_id")
    list_filter = ("operation_type", "tenant")
    search_fields = ("ingredient__name", "reference_id", "notes")

    def get_queryset(self, request):
        return StockHistoryEntry.all_objects.select_related("tenant", "ingredient")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
