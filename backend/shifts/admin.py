from django.contrib import admin
from .models import CashTransaction, Debt, Shift, ShiftAdjustment


class ShiftAdjustmentInline(admin.TabularInline):
    model = ShiftAdjustment
    extra = 0
    readonly_fields = ("amount", "description", "reference_id", "timestamp")

    def get_queryset(self, request):
        return ShiftAdjustment.all_objects.all()
    can_delete = False


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ("id", "tenant", "cashier_name", "status", "start_time", "end_time", "total_sales", "difference")
    list_filter = ("status", "tenant")
    inlines = [ShiftAdjustmentInline]

    def get_queryset(self, request):
        """Show all tenants in Django admin"""
        return Shift.all_objects.select_related("tenant")


@admin.register(CashTransaction)
class CashTransactionAdmin(admin.ModelAdmin):
    list_display = ("created_at", "tenant", "transaction_type", "amount", "payment_method", "category")
    list_filter = ("transaction_type", "payment_method", "tenant")

    def get_queryset(self, request):
        return CashTransaction.all_objects.select_related("tenant")


@admin.register(Debt)
class DebtAdmin(admin.ModelAdmin):
    list_display = ("created_at", "tenant", "debt_type", "person_name", "amount", "status")
    list_filter = ("debt_type", "status", "tenant")

    def get_queryset(self, request):
        return Debt.all_objects.select_related("tenant")
