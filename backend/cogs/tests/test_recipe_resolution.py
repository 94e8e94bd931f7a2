"""
Tests for RecipeResolver: recipe scaling and one-level bundle expansion.
"""
import pytest
from decimal import Decimal

from django.core.exceptions import ValidationError

from cogs.exceptions import BundleNestingError
from cogs.services import RecipeResolver
from products.models import BundleComponent
from core_backend.tests.fixtures import make_menu_item


def as_dict(resolved):
    return {r.ingredient.name: r.required_quantity for r in resolved}


@pytest.mark.django_db
class TestRecipeResolver:
    """Tests for resolving menu items into ingredient requirements."""

    def test_regular_item_scales_by_quantity(self, milk_latte):
        resolved = RecipeResolver().resolve_ingredients(milk_latte, 3)

        assert as_dict(resolved) == {
            "Coffee Beans": Decimal("60"),
            "Milk": Decimal("450"),
        }

    def test_item_without_recipe_resolves_to_nothing(self, mineral_water):
        assert RecipeResolver().resolve_ingredients(mineral_water, 2) == []

    def test_bundle_sums_component_recipes(self, breakfast_set):
        # 1 milk latte (20 beans, 150 milk) + 2 americano (18 beans, 1 gas)
        resolved = RecipeResolver().resolve_ingredients(breakfast_set, 2)

        assert as_dict(resolved) == {
            "Coffee Beans": Decimal("112"),
            "Milk": Decimal("300"),
            "Gas": Decimal("4"),
        }

    def test_bundle_lists_each_ingredient_once(self, breakfast_set):
        resolved = RecipeResolver().resolve_per_unit(breakfast_set)

        names = [r.ingredient.name for r in resolved]
        assert len(names) == len(set(names))

    def test_resolution_ignores_tenant_context(self, latte):
        from tenant.managers import set_current_tenant
        set_current_tenant(None)

        assert as_dict(RecipeResolver().resolve_per_unit(latte)) == {"Coffee Beans": Decimal("20")}

    def test_legacy_nested_bundle_is_rejected(self, tenant, breakfast_set):
        outer = make_menu_item(tenant, 'Family Set', 150000, is_bundle=True)
        # bulk_create skips model validation, like rows written before it existed
        BundleComponent.all_objects.bulk_create([
            BundleComponent(tenant=tenant, bundle=outer, product=breakfast_set, quantity=1)
        ])

        with pytest.raises(BundleNestingError):
            RecipeResolver().resolve_ingredients(outer, 1)


@pytest.mark.django_db
class TestBundleCatalogValidation:
    """Bundle composition rules enforced when the catalog is edited."""

    def test_nested_bundle_cannot_be_saved(self, tenant, breakfast_set):
        outer = make_menu_item(tenant, 'Family Set', 150000, is_bundle=True)

        with pytest.raises(ValidationError):
            BundleComponent.objects.create(tenant=tenant, bundle=outer, product=breakfast_set)

    def test_components_require_bundle_parent(self, tenant, latte, americano):
        with pytest.raises(ValidationError):
            BundleComponent.objects.create(tenant=tenant, bundle=latte, product=americano)

    def test_bundle_cannot_contain_itself(self, tenant):
        bundle = make_menu_item(tenant, 'Combo', 30000, is_bundle=True)

        with pytest.raises(ValidationError):
            BundleComponent.objects.create(tenant=tenant, bundle=bundle, product=bundle)

    def test_component_tenant_comes_from_bundle(self, tenant, latte):
        bundle = make_menu_item(tenant, 'Combo', 30000, is_bundle=True)

        component = BundleComponent(bundle=bundle, product=latte, quantity=2)
        component.save()

        assert component.tenant_id == tenant.id
