from rest_framework import serializers

from .models import CashTransaction, Debt, Shift, ShiftAdjustment


class ShiftAdjustmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShiftAdjustment
        fields = ["id", "amount", "description", "reference_id", "timestamp"]
        read_only_fields = fields


class ShiftSerializer(serializers.ModelSerializer):
    adjustments = ShiftAdjustmentSerializer(many=True, read_only=True)
    order_count = serializers.SerializerMethodField()

    class Meta:
        model = Shift
        fields = [
            "id", "cashier", "cashier_name", "status", "start_time", "end_time",
            "starting_cash", "current_cash", "current_non_cash",
            "cash_sales", "non_cash_sales", "total_sales",
            "expected_cash", "ending_cash", "difference", "notes",
            "order_count", "adjustments",
        ]
        read_only_fields = fields

    def get_order_count(self, obj):
        return obj.orders.count()


class OpenShiftSerializer(serializers.Serializer):
    starting_cash = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=0)
    cashier_name = serializers.CharField(required=False, allow_blank=True, default="")


class CloseShiftSerializer(serializers.Serializer):
    ending_cash = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class CashTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = CashTransaction
        fields = [
            "id", "transaction_type", "amount", "category", "payment_method",
            "description", "shift", "created_at",
        ]
        read_only_fields = ["id", "shift", "created_at"]

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be positive.")
        return value


class DebtSerializer(serializers.ModelSerializer):
    class Meta:
        model = Debt
        fields = [
            "id", "debt_type", "person_name", "amount", "description",
            "status", "settled_at", "created_at",
        ]
        read_only_fields = ["id", "status", "settled_at", "created_at"]

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be positive.")
        return value
