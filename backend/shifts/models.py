from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from tenant.managers import TenantManager


class PaymentMethod(models.TextChoices):
    CASH = "cash", _("Cash")
    QRIS = "qris", _("QRIS")
    TRANSFER = "transfer", _("Bank Transfer")
    CARD = "card", _("Card")


class Shift(models.Model):
    """
    A cash-drawer session. At most one shift per tenant is open
    (end_time IS NULL); the partial unique constraint enforces it.
    """

    class Status(models.TextChoices):
        OPEN = "open", _("Open")
        CLOSED = "closed", _("Closed")

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='shifts'
    )
    cashier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='shifts'
    )
    cashier_name = models.CharField(max_length=150, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.OPEN)
    start_time = models.DateTimeField(default=timezone.now)
    end_time = models.DateTimeField(null=True, blank=True)

    starting_cash = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    current_cash = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0"),
        help_text=_("Cash expected in the drawer right now")
    )
    current_non_cash = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    cash_sales = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    non_cash_sales = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total_sales = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    expected_cash = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    ending_cash = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    difference = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['-start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant'],
                condition=Q(end_time__isnull=True),
                name='unique_open_shift_per_tenant'
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'status'], name='shift_tenant_status_idx'),
            models.Index(fields=['tenant', 'start_time'], name='shift_tenant_start_idx'),
        ]

    def __str__(self):
        return f"Shift {self.pk} ({self.cashier_name or 'unknown'}, {self.status})"

    @property
    def is_open(self):
        return self.end_time is None


class ShiftAdjustment(models.Model):
    """Signed cash movement posted to a shift outside of sales."""

    tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE)
    shift = models.ForeignKey(Shift, on_delete=models.CASCADE, related_name='adjustments')
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.CharField(max_length=255)
    reference_id = models.CharField(max_length=100, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    timestamp = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['timestamp', 'id']

    def __str__(self):
        return f"{self.amount:+} {self.description}"


class CashTransaction(models.Model):
    """Money in or out of the business (expenses, capital, petty cash)."""

    class TransactionType(models.TextChoices):
        IN = "in", _("Money In")
        OUT = "out", _("Money Out")

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='cash_transactions'
    )
    shift = models.ForeignKey(
        Shift, on_delete=models.SET_NULL, null=True, blank=True, related_name='cash_transactions'
    )
    transaction_type = models.CharField(max_length=10, choices=TransactionType.choices)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    category = models.CharField(max_length=100, blank=True)
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    description = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_transaction_type_display()} {self.amount} ({self.category})"

    @property
    def signed_amount(self):
        if self.transaction_type == self.TransactionType.OUT:
            return -self.amount
        return self.amount


class Debt(models.Model):
    """
    Kasbon (employee cash advance) or piutang (customer receivable).
    """

    class DebtType(models.TextChoices):
        KASBON = "kasbon", _("Employee Cash Advance")
        PIUTANG = "piutang", _("Customer Receivable")

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        SETTLED = "settled", _("Settled")

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='debts'
    )
    debt_type = models.CharField(max_length=10, choices=DebtType.choices)
    person_name = models.CharField(max_length=150)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    settled_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'status'], name='debt_tenant_status_idx'),
        ]

    def __str__(self):
        return f"{self.get_debt_type_display()}: {self.person_name} {self.amount} ({self.status})"
