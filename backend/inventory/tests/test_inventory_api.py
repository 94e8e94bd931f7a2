"""
Inventory API integration tests.
"""
import pytest
from decimal import Decimal

from rest_framework import status

from inventory.models import Ingredient
from inventory.services import InventoryService

INGREDIENTS_URL = "/api/inventory/ingredients/"


@pytest.mark.django_db
class TestIngredientAPI:

    def test_list_ingredients(self, authenticated_client, coffee_beans, milk):
        response = authenticated_client.get(INGREDIENTS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert [i["name"] for i in response.data["results"]] == ["Coffee Beans", "Milk"]
        assert Decimal(response.data["results"][0]["purchase_cost"]) == Decimal("100")

    def test_restock(self, authenticated_client, coffee_beans, cashier):
        response = authenticated_client.post(
            f"{INGREDIENTS_URL}{coffee_beans.pk}/restock/",
            {"purchase_quantity": "1", "purchase_total": "150"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data["stock_quantity"]) == Decimal("2000")
        assert Decimal(response.data["unit_cost"]) == Decimal("0.125")

        history = authenticated_client.get(f"{INGREDIENTS_URL}{coffee_beans.pk}/history/")
        assert history.data[0]["operation_type"] == "restock"
        assert history.data[0]["user"] == str(cashier)

    def test_restock_non_physical_is_rejected(self, authenticated_client, gas):
        response = authenticated_client.post(
            f"{INGREDIENTS_URL}{gas.pk}/restock/",
            {"purchase_quantity": "1", "purchase_total": "150"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "invalid_operation"

    def test_adjust(self, authenticated_client, sugar):
        response = authenticated_client.post(
            f"{INGREDIENTS_URL}{sugar.pk}/adjust/",
            {"delta": "-250", "notes": "Stock count"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data["stock_quantity"]) == Decimal("1750")

    def test_strict_adjust_below_zero_is_409(self, authenticated_client, sugar, strict_stock):
        response = authenticated_client.post(
            f"{INGREDIENTS_URL}{sugar.pk}/adjust/", {"delta": "-5000"}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["code"] == "insufficient_stock"

    def test_archived_ingredients_on_request(self, authenticated_client, coffee_beans, milk):
        milk.archive()

        default = authenticated_client.get(INGREDIENTS_URL)
        everything = authenticated_client.get(INGREDIENTS_URL, {"include_archived": "true"})
        only = authenticated_client.get(INGREDIENTS_URL, {"include_archived": "only"})

        assert [i["name"] for i in default.data["results"]] == ["Coffee Beans"]
        assert [i["name"] for i in everything.data["results"]] == ["Coffee Beans", "Milk"]
        assert [i["name"] for i in only.data["results"]] == ["Milk"]

    def test_low_stock(self, authenticated_client, coffee_beans, milk):
        Ingredient.all_objects.filter(pk=milk.pk).update(low_stock_threshold=Decimal("6000"))

        response = authenticated_client.get(f"{INGREDIENTS_URL}low-stock/")

        assert [i["name"] for i in response.data] == ["Milk"]

    def test_other_tenant_ingredient_is_404(self, authenticated_client, tenant_b):
        theirs = Ingredient.all_objects.create(tenant=tenant_b, name="Flour", stock_quantity=10)

        response = authenticated_client.post(
            f"{INGREDIENTS_URL}{theirs.pk}/adjust/", {"delta": "5"}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_top_usage(self, authenticated_client, coffee_beans, milk):
        InventoryService.deduct(coffee_beans, 30)
        InventoryService.deduct(milk, 10)

        response = authenticated_client.get("/api/inventory/top-usage/", {"limit": 1})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]["ingredient_name"] == "Coffee Beans"
        assert Decimal(response.data[0]["total_quantity"]) == Decimal("30")

    def test_top_usage_rejects_bad_limit(self, authenticated_client):
        response = authenticated_client.get("/api/inventory/top-usage/", {"limit": "lots"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
