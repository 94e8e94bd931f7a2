from rest_framework import serializers

from .models import Ingredient, Recipe, RecipeItem, StockHistoryEntry


class IngredientSerializer(serializers.ModelSerializer):
    purchase_cost = serializers.DecimalField(max_digits=18, decimal_places=4, read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Ingredient
        fields = [
            "id", "name", "ingredient_type", "stock_quantity", "unit",
            "unit_of_purchase", "conversion_rate", "unit_cost", "purchase_cost",
            "last_purchase_price", "last_purchase_date", "low_stock_threshold",
            "is_low_stock", "is_active",
        ]
        read_only_fields = fields


class RecipeItemSerializer(serializers.ModelSerializer):
    ingredient_name = serializers.CharField(source="ingredient.name", read_only=True)
    unit = serializers.CharField(source="ingredient.unit", read_only=True)

    class Meta:
        model = RecipeItem
        fields = ["id", "ingredient", "ingredient_name", "quantity", "unit"]


class RecipeSerializer(serializers.ModelSerializer):
    items = RecipeItemSerializer(many=True, read_only=True)

    class Meta:
        model = Recipe
        fields = ["id", "menu_item", "name", "items"]


class StockHistoryEntrySerializer(serializers.ModelSerializer):
    ingredient_name = serializers.CharField(source="ingredient.name", read_only=True)
    user = serializers.StringRelatedField()

    class Meta:
        model = StockHistoryEntry
        fields = [
            "id", "ingredient", "ingredient_name", "operation_type", "quantity",
            "previous_quantity", "new_quantity", "previous_unit_cost", "new_unit_cost",
            "purchase_total", "notes", "reference_id", "user", "timestamp",
        ]
        read_only_fields = fields


class RestockSerializer(serializers.Serializer):
    purchase_quantity = serializers.DecimalField(max_digits=14, decimal_places=4)
    purchase_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    conversion_rate = serializers.DecimalField(
        max_digits=12, decimal_places=4, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_purchase_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Purchase quantity must be positive.")
        return value


class StockAdjustmentSerializer(serializers.Serializer):
    delta = serializers.DecimalField(max_digits=14, decimal_places=4)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("Adjustment cannot be zero.")
        return value


class TopUsageSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    ingredient_name = serializers.CharField(source="ingredient__name")
    unit = serializers.CharField(source="ingredient__unit")
    total_quantity = serializers.DecimalField(max_digits=18, decimal_places=4)
    usage_count = serializers.IntegerField()
