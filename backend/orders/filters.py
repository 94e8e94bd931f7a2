import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    created_after = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")
    customer_phone = django_filters.CharFilter(field_name="customer_phone")

    class Meta:
        model = Order
        fields = ["status", "payment_status", "payment_method", "table_number", "is_merged"]
