from rest_framework import serializers

from shifts.models import PaymentMethod
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    total_price = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id", "menu_item", "name", "quantity", "unit_price",
            "locked_cost", "total_price", "notes",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    margin = serializers.DecimalField(max_digits=16, decimal_places=4, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "order_number", "status", "payment_status", "payment_method",
            "customer", "customer_name", "customer_phone", "table_number", "note",
            "subtotal", "total", "total_cost", "margin",
            "stock_deducted", "is_settled", "settled_at", "shift",
            "is_merged", "original_order_ids", "merged_into",
            "cancellation_reason", "created_at", "updated_at", "completed_at",
            "items",
        ]
        read_only_fields = fields


class OrderLineCreateSerializer(serializers.Serializer):
    menu_item = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderCreateSerializer(serializers.Serializer):
    items = OrderLineCreateSerializer(many=True, allow_empty=False)
    customer_name = serializers.CharField(required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(required=False, allow_blank=True, default="")
    table_number = serializers.CharField(required=False, allow_blank=True, default="")
    note = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(
        choices=[Order.OrderStatus.NEW, Order.OrderStatus.PROCESS, Order.OrderStatus.DONE],
        default=Order.OrderStatus.NEW,
    )
    payment_status = serializers.ChoiceField(
        choices=[Order.PaymentStatus.UNPAID, Order.PaymentStatus.PAID],
        default=Order.PaymentStatus.UNPAID,
    )
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False, allow_blank=True, default=""
    )


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[
        Order.OrderStatus.PROCESS,
        Order.OrderStatus.SERVED,
        Order.OrderStatus.DONE,
        Order.OrderStatus.CANCEL,
    ])
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class PayOrderSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    complete = serializers.BooleanField(default=True)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class MergeOrdersSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.UUIDField(), min_length=2)


class CheckPhoneSerializer(serializers.Serializer):
    phone = serializers.CharField()


class SideEffectOutcomeSerializer(serializers.Serializer):
    name = serializers.CharField()
    status = serializers.CharField()
    detail = serializers.CharField()


def serialize_transition(result):
    """Response body for a TransitionResult."""
    return {
        "order": OrderSerializer(result.order).data,
        "side_effects": SideEffectOutcomeSerializer(result.side_effects, many=True).data,
    }
