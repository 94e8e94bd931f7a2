import uuid
from django.db import models


class Tenant(models.Model):
    """
    Root entity for multi-tenancy.
    Each business (restaurant, cafe, kiosk) is a tenant and owns its own
    ingredients, menu, orders, shifts and customers.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=255,
        help_text="Display name for the tenant (e.g., Warung Kopi Senja)"
    )
    slug = models.SlugField(
        unique=True,
        help_text="URL-safe identifier sent by clients in the X-Tenant header"
    )
    business_name = models.CharField(max_length=255, blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=50, blank=True)

    is_active = models.BooleanField(
        default=True,
        help_text="Inactive tenants cannot access the system"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tenants'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active'], name='tenant_is_active_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.slug})"
