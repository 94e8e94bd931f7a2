from decimal import Decimal

from django.conf import settings as django_settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class StockPolicy(models.TextChoices):
    PERMISSIVE = "permissive", "Permissive (allow negative stock)"
    STRICT = "strict", "Strict (reject insufficient stock)"


class BusinessSettings(models.Model):
    """
    Tenant-wide business rules read by the order engine.

    Loyalty:
        points = floor(floor(order_total / point_ratio) * tier_multiplier)
        where the tier comes from the customer's spend BEFORE the order.

    Inventory:
        stock_policy decides whether a deduction may take stock below zero.
    """

    tenant = models.OneToOneField(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='business_settings'
    )

    # === LOYALTY ===
    loyalty_enabled = models.BooleanField(default=True)
    point_ratio = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("10000"),
        validators=[MinValueValidator(Decimal("1"))],
        help_text="Amount of spend that earns one base point"
    )
    silver_threshold = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("500000"),
        help_text="Lifetime spend at which a customer becomes silver"
    )
    gold_threshold = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("2000000"),
        help_text="Lifetime spend at which a customer becomes gold"
    )
    silver_multiplier = models.DecimalField(
        max_digits=4, decimal_places=2, default=Decimal("1.25")
    )
    gold_multiplier = models.DecimalField(
        max_digits=4, decimal_places=2, default=Decimal("1.50")
    )

    # === INVENTORY ===
    stock_policy = models.CharField(
        max_length=20,
        choices=StockPolicy.choices,
        blank=True,
        default="",
        help_text="Leave blank to use the INVENTORY_STOCK_POLICY setting"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Business Settings"
        verbose_name_plural = "Business Settings"

    def __str__(self):
        return f"Business settings for {self.tenant}"

    def clean(self):
        if self.gold_threshold <= self.silver_threshold:
            raise ValidationError("Gold threshold must be greater than silver threshold")

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def effective_stock_policy(self):
        if self.stock_policy:
            return self.stock_policy
        return getattr(django_settings, 'INVENTORY_STOCK_POLICY', StockPolicy.PERMISSIVE)

    @property
    def is_strict_stock(self):
        return self.effective_stock_policy == StockPolicy.STRICT

    def tier_for_spend(self, total_spent):
        """Return the loyalty tier a lifetime spend qualifies for."""
        if total_spent >= self.gold_threshold:
            return "gold"
        if total_spent >= self.silver_threshold:
            return "silver"
        return "regular"

    def multiplier_for_tier(self, tier):
        return {
            "gold": self.gold_multiplier,
            "silver": self.silver_multiplier,
        }.get(tier, Decimal("1"))

    @classmethod
    def for_tenant(cls, tenant):
        """Fetch the tenant's settings, creating the defaults on first use."""
        business_settings, _ = cls.objects.get_or_create(tenant=tenant)
        return business_settings
