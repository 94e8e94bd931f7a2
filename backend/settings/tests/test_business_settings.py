"""
BusinessSettings tests.
"""
import pytest
from decimal import Decimal

from django.core.exceptions import ValidationError

from settings.models import BusinessSettings, StockPolicy


@pytest.mark.django_db
class TestBusinessSettings:

    def test_defaults_created_on_first_use(self, tenant):
        business_settings = BusinessSettings.for_tenant(tenant)

        assert business_settings.loyalty_enabled is True
        assert business_settings.point_ratio == Decimal("10000")
        assert BusinessSettings.for_tenant(tenant).pk == business_settings.pk

    def test_stock_policy_falls_back_to_django_setting(self, business_settings, settings):
        settings.INVENTORY_STOCK_POLICY = StockPolicy.STRICT

        assert business_settings.effective_stock_policy == StockPolicy.STRICT
        assert business_settings.is_strict_stock is True

    def test_tenant_policy_overrides_setting(self, business_settings, settings):
        settings.INVENTORY_STOCK_POLICY = StockPolicy.STRICT
        business_settings.stock_policy = StockPolicy.PERMISSIVE

        assert business_settings.effective_stock_policy == StockPolicy.PERMISSIVE

    @pytest.mark.parametrize("spent,tier", [
        (Decimal("0"), "regular"),
        (Decimal("499999"), "regular"),
        (Decimal("500000"), "silver"),
        (Decimal("1999999.99"), "silver"),
        (Decimal("2000000"), "gold"),
    ])
    def test_tier_for_spend(self, business_settings, spent, tier):
        assert business_settings.tier_for_spend(spent) == tier

    def test_multipliers(self, business_settings):
        assert business_settings.multiplier_for_tier("regular") == Decimal("1")
        assert business_settings.multiplier_for_tier("silver") == Decimal("1.25")
        assert business_settings.multiplier_for_tier("gold") == Decimal("1.50")

    def test_gold_threshold_must_exceed_silver(self, business_settings):
        business_settings.gold_threshold = Decimal("400000")

        with pytest.raises(ValidationError):
            business_settings.save()
