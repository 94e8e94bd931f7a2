from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _
from decimal import Decimal

from core_backend.utils.archiving import SoftDeleteMixin
from tenant.managers import TenantManager, TenantSoftDeleteManager


class MenuItem(SoftDeleteMixin):
    """
    A sellable item. Regular items consume stock through their recipe
    (inventory.Recipe); bundles consume the recipes of their components.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='menu_items'
    )
    name = models.CharField(max_length=200, help_text=_("Name of the menu item."))
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("The selling price of the item."),
    )
    is_bundle = models.BooleanField(
        default=False,
        help_text=_("Bundles have no recipe of their own; components are deducted instead."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantSoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Menu Item")
        verbose_name_plural = _("Menu Items")
        ordering = ["name"]
        indexes = [
            models.Index(fields=['tenant', 'is_active'], name='menuitem_tenant_active_idx'),
            models.Index(fields=['tenant', 'is_bundle'], name='menuitem_tenant_bundle_idx'),
        ]

    def __str__(self):
        return self.name


class BundleComponent(models.Model):
    """
    One component of a bundle: `quantity` units of `product` per bundle sold.

    Bundles are one level deep. A component that is itself a bundle is
    rejected here, at catalog-authoring time.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='bundle_components'
    )
    bundle = models.ForeignKey(
        MenuItem,
        on_delete=models.CASCADE,
        related_name='bundle_components'
    )
    product = models.ForeignKey(
        MenuItem,
        on_delete=models.PROTECT,
        related_name='included_in_bundles'
    )
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['bundle', 'product'],
                name='unique_bundle_component'
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product.name} in {self.bundle.name}"

    def clean(self):
        if not self.bundle.is_bundle:
            raise ValidationError(
                f"'{self.bundle.name}' is not a bundle; mark it as a bundle before adding components"
            )
        if self.bundle_id == self.product_id:
            raise ValidationError("A bundle cannot contain itself")
        if self.product.is_bundle:
            raise ValidationError(
                f"'{self.product.name}' is a bundle; bundles cannot be nested inside other bundles"
            )
        if self.bundle.tenant_id != self.product.tenant_id:
            raise ValidationError("Bundle components must belong to the same tenant")

    def save(self, *args, **kwargs):
        if not self.tenant_id:
            self.tenant_id = self.bundle.tenant_id
        self.full_clean()
        super().save(*args, **kwargs)
