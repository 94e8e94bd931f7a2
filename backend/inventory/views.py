from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core_backend.base import BaseReadOnlyViewSet
from .models import Ingredient
from .serializers import (
    IngredientSerializer,
    RestockSerializer,
    StockAdjustmentSerializer,
    StockHistoryEntrySerializer,
    TopUsageSerializer,
)
from .services import InventoryService


class IngredientViewSet(BaseReadOnlyViewSet):
    """
    Ingredient ledger endpoints. Catalog editing lives elsewhere; this
    surface only reads ingredients and moves stock.
    """

    queryset = Ingredient.objects.all()
    serializer_class = IngredientSerializer
    filterset_fields = ["ingredient_type"]
    search_fields = ["name"]
    ordering_fields = ["name", "stock_quantity"]
    ordering = ["name"]

    @action(detail=True, methods=["post"])
    def restock(self, request, pk=None):
        serializer = RestockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        ingredient = InventoryService.restock(
            self.get_object(),
            purchase_quantity=data["purchase_quantity"],
            purchase_total=data["purchase_total"],
            conversion_rate=data.get("conversion_rate"),
            user=request.user,
            notes=data["notes"],
        )
        return Response(IngredientSerializer(ingredient).data)

    @action(detail=True, methods=["post"])
    def adjust(self, request, pk=None):
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ingredient = self.get_object()
        InventoryService.manual_adjust(
            ingredient,
            serializer.validated_data["delta"],
            notes=serializer.validated_data["notes"],
            user=request.user,
        )
        ingredient.refresh_from_db()
        return Response(IngredientSerializer(ingredient).data)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        entries = InventoryService.get_history(self.get_object(), limit=200)
        return Response(StockHistoryEntrySerializer(entries, many=True).data)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        ingredients = InventoryService.get_low_stock_ingredients()
        return Response(IngredientSerializer(ingredients, many=True).data)


class TopUsageView(APIView):
    """Ingredients consumed most by orders."""

    def get(self, request, *args, **kwargs):
        try:
            limit = int(request.query_params.get("limit", 5))
        except ValueError:
            return Response(
                {"error": "limit must be an integer"}, status=status.HTTP_400_BAD_REQUEST
            )
        rows = InventoryService.get_top_usage(limit=max(1, min(limit, 50)))
        return Response(TopUsageSerializer(rows, many=True).data)
