"""
Shared test fixtures for all backend tests.

The catalog mirrors a small coffee shop:

    coffee_beans   1000 g @ 0.1 / g
    milk           5000 ml @ 0.02 / ml
    sugar          2000 g @ 0.015 / g
    gas            non-physical, 50 per serving unit

    latte          20 g beans + 150 ml milk          price 25000
    americano      18 g beans + 1 gas unit            price 20000
    breakfast_set  bundle: 1 latte + 2 americano      price 60000
"""
import pytest
from decimal import Decimal

from django.contrib.auth import get_user_model

from tenant.models import Tenant
from tenant.managers import set_current_tenant
from settings.models import BusinessSettings
from products.models import MenuItem, BundleComponent
from inventory.models import Ingredient, Recipe, RecipeItem
from customers.models import Customer


# ============================================================================
# TENANT FIXTURES
# ============================================================================

@pytest.fixture
def tenant(db):
    """Create the test tenant and make it the current tenant."""
    tenant = Tenant.objects.create(
        name='Kopi Senja',
        slug='kopi-senja',
        is_active=True
    )
    set_current_tenant(tenant)
    return tenant


@pytest.fixture
def tenant_a(db):
    return Tenant.objects.create(name='Pizza Place', slug='pizza-place', is_active=True)


@pytest.fixture
def tenant_b(db):
    return Tenant.objects.create(name='Burger Joint', slug='burger-joint', is_active=True)


@pytest.fixture
def business_settings(tenant):
    return BusinessSettings.for_tenant(tenant)


@pytest.fixture
def strict_stock(business_settings):
    business_settings.stock_policy = 'strict'
    business_settings.save()
    return business_settings


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def cashier(db):
    User = get_user_model()
    return User.objects.create_user(
        username='cashier',
        password='secret-password',
        first_name='Sari',
        last_name='Kasir',
    )


# ============================================================================
# INGREDIENT FIXTURES
# ============================================================================

def make_ingredient(tenant, name, stock, unit_cost, unit='gram', **kwargs):
    return Ingredient.objects.create(
        tenant=tenant,
        name=name,
        stock_quantity=Decimal(str(stock)),
        unit_cost=Decimal(str(unit_cost)),
        unit=unit,
        **kwargs
    )


@pytest.fixture
def coffee_beans(tenant):
    return make_ingredient(
        tenant, 'Coffee Beans', 1000, '0.1',
        unit_of_purchase='kg', conversion_rate=Decimal('1000'),
    )


@pytest.fixture
def milk(tenant):
    return make_ingredient(tenant, 'Milk', 5000, '0.02', unit='ml')


@pytest.fixture
def sugar(tenant):
    return make_ingredient(tenant, 'Sugar', 2000, '0.015')


@pytest.fixture
def gas(tenant):
    return make_ingredient(
        tenant, 'Gas', 0, '50', unit='serving',
        ingredient_type=Ingredient.IngredientType.NON_PHYSICAL,
    )


# ============================================================================
# MENU FIXTURES
# ============================================================================

def make_menu_item(tenant, name, price, recipe=None, is_bundle=False):
    """Create a menu item and, when `recipe` is given, its recipe lines."""
    menu_item = MenuItem.objects.create(
        tenant=tenant,
        name=name,
        price=Decimal(str(price)),
        is_bundle=is_bundle,
    )
    if recipe:
        recipe_obj = Recipe.objects.create(tenant=tenant, menu_item=menu_item, name=name)
        for ingredient, quantity in recipe:
            RecipeItem.objects.create(
                tenant=tenant,
                recipe=recipe_obj,
                ingredient=ingredient,
                quantity=Decimal(str(quantity)),
            )
    return menu_item


@pytest.fixture
def latte(tenant, coffee_beans):
    return make_menu_item(tenant, 'Latte', 25000, recipe=[(coffee_beans, 20)])


@pytest.fixture
def milk_latte(tenant, coffee_beans, milk):
    return make_menu_item(tenant, 'Milk Latte', 28000, recipe=[(coffee_beans, 20), (milk, 150)])


@pytest.fixture
def americano(tenant, coffee_beans, gas):
    return make_menu_item(tenant, 'Americano', 20000, recipe=[(coffee_beans, 18), (gas, 1)])


@pytest.fixture
def mineral_water(tenant):
    """Resale item without a recipe."""
    return make_menu_item(tenant, 'Mineral Water', 5000)


@pytest.fixture
def breakfast_set(tenant, milk_latte, americano):
    bundle = make_menu_item(tenant, 'Breakfast Set', 60000, is_bundle=True)
    BundleComponent.objects.create(tenant=tenant, bundle=bundle, product=milk_latte, quantity=1)
    BundleComponent.objects.create(tenant=tenant, bundle=bundle, product=americano, quantity=2)
    return bundle


# ============================================================================
# CUSTOMER FIXTURES
# ============================================================================

@pytest.fixture
def customer(tenant):
    return Customer.objects.create(
        tenant=tenant,
        name='Budi Santoso',
        phone='081234567890',
    )


# ============================================================================
# SHIFT FIXTURES
# ============================================================================

@pytest.fixture
def open_shift(tenant, cashier):
    from shifts.services import ShiftService
    return ShiftService.open_shift(tenant, cashier=cashier, starting_cash=Decimal("100000"))
