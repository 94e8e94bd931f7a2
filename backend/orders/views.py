from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from core_backend.base import TenantScopedQuerysetMixin
from .filters import OrderFilter
from .models import Order
from .serializers import (
    CancelOrderSerializer,
    CheckPhoneSerializer,
    MergeOrdersSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PayOrderSerializer,
    serialize_transition,
)
from .services import OrderService


class OrderViewSet(
    TenantScopedQuerysetMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    POS order endpoints. All state changes go through OrderService; domain
    errors are turned into responses by the project exception handler.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer_name", "customer_phone"]
    ordering_fields = ["created_at", "total", "order_number"]
    ordering = ["-created_at"]

    def get_queryset(self):
        queryset = super().get_queryset().prefetch_related("items")
        if self.action == "list":
            # Merged originals and archived orders stay out of the POS list
            queryset = queryset.visible()
        return queryset

    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = OrderService.create_order(
            tenant=request.tenant,
            items=data["items"],
            customer_name=data["customer_name"],
            customer_phone=data["customer_phone"],
            table_number=data["table_number"],
            note=data["note"],
            status=data["status"],
            payment_status=data["payment_status"],
            payment_method=data["payment_method"],
            user=request.user,
        )
        return Response(serialize_transition(result), status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, *args, **kwargs) -> Response:
        OrderService.delete_order(self.get_object(), user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request: Request, pk=None) -> Response:
        """Moves the order to a new status (process, served, done, cancel)."""
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = OrderService.update_status(
            self.get_object(),
            serializer.validated_data["status"],
            user=request.user,
            reason=serializer.validated_data["reason"],
        )
        return Response(serialize_transition(result))

    @action(detail=True, methods=["post"], url_path="pay")
    def pay(self, request: Request, pk=None) -> Response:
        serializer = PayOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = OrderService.pay_order(
            self.get_object(),
            payment_method=serializer.validated_data["payment_method"],
            user=request.user,
            complete=serializer.validated_data["complete"],
        )
        return Response(serialize_transition(result))

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request: Request, pk=None) -> Response:
        """Cancels the order, returning deducted stock and refunding payment."""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = OrderService.cancel_order(
            self.get_object(), user=request.user, reason=serializer.validated_data["reason"]
        )
        return Response(serialize_transition(result))

    @action(detail=False, methods=["post"], url_path="merge")
    def merge(self, request: Request) -> Response:
        serializer = MergeOrdersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = OrderService.merge_orders(
            serializer.validated_data["order_ids"], merged_by=request.user
        )
        return Response(serialize_transition(result), status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="check-phone")
    def check_phone(self, request: Request) -> Response:
        """Active (new / in process) orders for a customer phone number."""
        serializer = CheckPhoneSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        orders = OrderService.get_active_orders_for_phone(serializer.validated_data["phone"])
        return Response({
            "has_active_orders": orders.exists(),
            "orders": OrderSerializer(orders, many=True).data,
        })
