"""
Loyalty customers of a tenant's POS.

Customers are identified by phone where possible and accumulate spend,
visits and points as their orders are settled.
"""
from decimal import Decimal

from django.db import models
from django.db.models import Q

from tenant.managers import TenantManager


def normalize_phone(phone):
    """Strip spaces and separators; returns "" for empty input."""
    if not phone:
        return ""
    return "".join(ch for ch in str(phone).strip() if ch.isdigit() or ch == "+")


class CustomerManager(TenantManager):
    """Tenant-filtered manager with loyalty lookups."""

    def find_by_phone(self, phone):
        phone = normalize_phone(phone)
        if not phone:
            return None
        return self.filter(phone=phone).first()


class Customer(models.Model):

    class Tier(models.TextChoices):
        REGULAR = 'regular', 'Regular'
        SILVER = 'silver', 'Silver'
        GOLD = 'gold', 'Gold'

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='customers'
    )
    name = models.CharField(max_length=150)
    phone = models.CharField(max_length=30, null=True, blank=True)
    email = models.EmailField(blank=True)

    # Loyalty
    total_spent = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    visit_count = models.PositiveIntegerField(default=0)
    points = models.PositiveIntegerField(default=0)
    tier = models.CharField(max_length=20, choices=Tier.choices, default=Tier.REGULAR)
    last_order_date = models.DateTimeField(null=True, blank=True)
    last_points_earned_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomerManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'phone'],
                condition=Q(phone__isnull=False),
                name='unique_customer_phone_per_tenant'
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'phone'], name='customer_tenant_phone_idx'),
            models.Index(fields=['tenant', 'tier'], name='customer_tenant_tier_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone})" if self.phone else self.name

    def save(self, *args, **kwargs):
        self.phone = normalize_phone(self.phone) or None
        super().save(*args, **kwargs)
