from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("menu_item", "name", "quantity", "unit_price", "locked_cost", "notes")
    readonly_fields = fields
    can_delete = False

    def get_queryset(self, request):
        return OrderItem.all_objects.select_related("menu_item")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number", "tenant", "status", "payment_status", "total",
        "total_cost", "stock_deducted", "is_settled", "created_at",
    )
    list_filter = ("status", "payment_status", "stock_deducted", "is_settled", "tenant")
    search_fields = ("order_number", "customer_name", "customer_phone")
    # State changes go through OrderService
    readonly_fields = (
        "status", "payment_status", "subtotal", "total", "total_cost",
        "stock_deducted", "is_settled", "settled_at", "shift",
        "is_merged", "original_order_ids", "merged_into",
    )
    inlines = [OrderItemInline]

    def get_queryset(self, request):
        """Show all tenants in Django admin"""
        return Order.all_objects.select_related("tenant", "customer")

    def has_delete_permission(self, request, obj=None):
        return False
