from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core_backend.base import TenantScopedQuerysetMixin
from core_backend.exceptions import NotFoundError
from .models import CashTransaction, Debt, PaymentMethod
from .serializers import (
    CashTransactionSerializer,
    CloseShiftSerializer,
    DebtSerializer,
    OpenShiftSerializer,
    ShiftSerializer,
)
from .services import CashTransactionService, DebtService, ShiftService


class CurrentShiftView(APIView):
    def get(self, request, *args, **kwargs):
        shift = ShiftService.get_active_shift(request.tenant.pk)
        if shift is None:
            raise NotFoundError("Shift", message="No open shift")
        return Response(ShiftSerializer(shift).data)


class ShiftActivitiesView(APIView):
    def get(self, request, *args, **kwargs):
        return Response(ShiftService.get_activities(request.tenant.pk))


class OpenShiftView(APIView):
    def post(self, request, *args, **kwargs):
        serializer = OpenShiftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shift = ShiftService.open_shift(
            request.tenant,
            cashier=request.user,
            starting_cash=serializer.validated_data["starting_cash"],
            cashier_name=serializer.validated_data["cashier_name"],
        )
        return Response(ShiftSerializer(shift).data, status=status.HTTP_201_CREATED)


class CloseShiftView(APIView):
    def post(self, request, *args, **kwargs):
        serializer = CloseShiftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shift = ShiftService.close_shift(
            request.tenant.pk,
            ending_cash=serializer.validated_data["ending_cash"],
            notes=serializer.validated_data["notes"],
        )
        return Response(ShiftSerializer(shift).data)


class CashTransactionViewSet(
    TenantScopedQuerysetMixin,
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = CashTransaction.objects.all()
    serializer_class = CashTransactionSerializer

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = CashTransactionService.record(
            self.request.tenant.pk,
            transaction_type=data["transaction_type"],
            amount=data["amount"],
            payment_method=data.get("payment_method", PaymentMethod.CASH),
            category=data.get("category", ""),
            description=data.get("description", ""),
            user=self.request.user,
        )

    def perform_destroy(self, instance):
        CashTransactionService.delete(instance, user=self.request.user)


class DebtViewSet(
    TenantScopedQuerysetMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Debt.objects.all()
    serializer_class = DebtSerializer
    filterset_fields = ["status", "debt_type"]

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = DebtService.create_debt(
            self.request.tenant.pk,
            debt_type=data["debt_type"],
            person_name=data["person_name"],
            amount=data["amount"],
            description=data.get("description", ""),
            user=self.request.user,
        )

    @action(detail=True, methods=["post"])
    def settle(self, request, pk=None):
        debt = DebtService.settle_debt(self.get_object(), user=request.user)
        return Response(DebtSerializer(debt).data)
