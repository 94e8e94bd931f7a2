from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "tenant", "tier", "points", "total_spent", "visit_count")
    list_filter = ("tier", "tenant")
    search_fields = ("name", "phone", "email")
    readonly_fields = ("total_spent", "visit_count", "points", "tier", "last_order_date", "last_points_earned_at")

    def get_queryset(self, request):
        """Show all tenants in Django admin"""
        return Customer.all_objects.select_related("tenant")
