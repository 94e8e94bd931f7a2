from django.contrib import admin
from .models import MenuItem, BundleComponent


class BundleComponentInline(admin.TabularInline):
    model = BundleComponent
    fk_name = "bundle"
    extra = 0
    fields = ("product", "quantity")

    def get_queryset(self, request):
        return BundleComponent.all_objects.select_related("product")


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "price", "is_bundle", "is_active")
    list_filter = ("is_bundle", "is_active", "tenant")
    search_fields = ("name",)
    inlines = [BundleComponentInline]

    def get_queryset(self, request):
        """Show all tenants in Django admin"""
        return MenuItem.all_objects.select_related("tenant")
