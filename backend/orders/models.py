import re
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from products.models import MenuItem
from shifts.models import PaymentMethod
from tenant.managers import TenantManager


class OrderQuerySet(models.QuerySet):

    def visible(self):
        """Orders shown on the POS: merged originals and archived orders are hidden."""
        return self.exclude(status=Order.OrderStatus.MERGED).filter(is_archived_from_pos=False)

    def active(self):
        return self.filter(status__in=[Order.OrderStatus.NEW, Order.OrderStatus.PROCESS])


class OrderManager(TenantManager.from_queryset(OrderQuerySet)):
    pass


class Order(models.Model):
    # --- Status Fields ---
    class OrderStatus(models.TextChoices):
        NEW = "new", _("New")  # Placed, nothing deducted yet
        PROCESS = "process", _("In Process")  # Kitchen is preparing, stock deducted
        SERVED = "served", _("Served")
        DONE = "done", _("Done")  # Settled
        CANCEL = "cancel", _("Cancelled")
        MERGED = "merged", _("Merged")  # Folded into another order

    class PaymentStatus(models.TextChoices):
        UNPAID = "unpaid", _("Unpaid")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    # Entering any of these consumes the ingredients
    DEDUCTING_STATUSES = (OrderStatus.PROCESS, OrderStatus.SERVED, OrderStatus.DONE)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='orders'
    )
    order_number = models.CharField(max_length=20, blank=True, db_index=True)

    # --- Customer ---
    customer = models.ForeignKey(
        'customers.Customer',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    customer_name = models.CharField(max_length=150, blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    table_number = models.CharField(max_length=20, blank=True)

    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.NEW
    )
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, blank=True
    )

    # --- Financials ---
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_cost = models.DecimalField(
        max_digits=16, decimal_places=4, default=Decimal("0"),
        help_text=_("Sum of locked item costs (HPP) x quantity")
    )

    # --- Consistency flags ---
    stock_deducted = models.BooleanField(
        default=False,
        help_text=_("True while this order's ingredients are deducted from stock")
    )
    is_settled = models.BooleanField(
        default=False,
        help_text=_("Loyalty accrual has been applied")
    )
    settled_at = models.DateTimeField(null=True, blank=True)
    shift = models.ForeignKey(
        'shifts.Shift',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )

    # --- Merge ---
    is_merged = models.BooleanField(default=False)
    original_order_ids = models.JSONField(default=list, blank=True)
    merged_into = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='merged_orders'
    )
    is_archived_from_pos = models.BooleanField(default=False)

    # --- Cancellation ---
    cancellation_reason = models.TextField(blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_orders'
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_orders'
    )

    note = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = OrderManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'order_number'],
                name='unique_order_number_per_tenant'
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'status'], name='order_tenant_status_idx'),
            models.Index(fields=['tenant', 'customer_phone'], name='order_tenant_phone_idx'),
            models.Index(fields=['tenant', 'created_at'], name='order_tenant_created_idx'),
        ]

    def __str__(self):
        return f"Order {self.order_number} ({self.get_status_display()})"

    @property
    def margin(self):
        return self.total - self.total_cost

    def save(self, *args, **kwargs):
        # Generate order_number only if it's not already set
        if not self.order_number:
            max_retries = 5  # Prevent infinite loop in extreme race conditions
            for _attempt in range(max_retries):
                self.order_number = self._generate_sequential_order_number()
                try:
                    with transaction.atomic():
                        super().save(*args, **kwargs)
                    break
                except IntegrityError:
                    # Another request took the number, retry
                    self._state.adding = True
                    continue
            else:
                raise IntegrityError(
                    "Failed to generate a unique order number after multiple retries."
                )
        else:
            super().save(*args, **kwargs)

    def _generate_sequential_order_number(self):
        """
        Generates the next sequential order number for the tenant,
        e.g. ORD-00001, ORD-00002.
        """
        prefix = "ORD-"
        last_order = (
            Order.all_objects.filter(
                tenant_id=self.tenant_id,
                order_number__startswith=prefix
            )
            .order_by("-order_number")
            .first()
        )

        next_number = 1
        if last_order and last_order.order_number:
            match = re.match(rf"^{re.escape(prefix)}(\d+)$", last_order.order_number)
            if match:
                next_number = int(match.group(1)) + 1

        return f"{prefix}{next_number:05d}"


class OrderItem(models.Model):
    """
    A line of an order. `locked_cost` is the per-unit HPP frozen when the
    line was created and can never change afterwards.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='order_items'
    )
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(
        MenuItem,
        on_delete=models.PROTECT,
        related_name="order_items",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=200, help_text=_("Menu item name at the time of sale."))
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text=_("Price of the item at the time of sale."),
    )
    locked_cost = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal("0"),
        help_text=_("Per-unit cost of goods (HPP) locked at order creation."),
    )
    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=['tenant', 'order'], name='orderitem_tenant_order_idx'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.name} for Order {self.order.order_number}"

    @property
    def total_price(self):
        return self.quantity * self.unit_price

    @property
    def total_cost(self):
        return self.quantity * self.locked_cost

    def save(self, *args, **kwargs):
        if not self._state.adding and self.pk:
            stored_cost = (
                OrderItem.all_objects.filter(pk=self.pk)
                .values_list('locked_cost', flat=True)
                .first()
            )
            if stored_cost is not None and stored_cost != self.locked_cost:
                raise ValueError("locked_cost cannot be changed once the order item exists")
        if not self.tenant_id:
            self.tenant_id = self.order.tenant_id
        super().save(*args, **kwargs)
