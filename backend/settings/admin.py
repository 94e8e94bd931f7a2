from django.contrib import admin
from .models import BusinessSettings


@admin.register(BusinessSettings)
class BusinessSettingsAdmin(admin.ModelAdmin):
    list_display = ("tenant", "loyalty_enabled", "point_ratio", "stock_policy", "updated_at")
    list_filter = ("loyalty_enabled", "stock_policy")
    fieldsets = (
        (None, {'fields': ('tenant',)}),
        ('Loyalty', {
            'fields': (
                'loyalty_enabled', 'point_ratio',
                'silver_threshold', 'gold_threshold',
                'silver_multiplier', 'gold_multiplier',
            ),
        }),
        ('Inventory', {
            'fields': ('stock_policy',),
            'description': 'Blank uses the INVENTORY_STOCK_POLICY deployment setting.'
        }),
    )
