from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.generics import ListAPIView
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.utils.throttle import CheckoutRateThrottle
from .filters import AdminOrderFilter
from .models import Order
from .serializers import (
    AdminOrderSerializer,
    CreateOrderSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from .services import OrderService


class CreateOrderView(APIView):
    """
    Public checkout. The user is attached only when the request is authenticated.
    """
    permission_classes = [AllowAny]
    throttle_classes = [CheckoutRateThrottle]

    def post(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService().create(
            customer=data,
            delivery_zone=data["delivery_zone"],
            items=data["items"],
            user=request.user,
            locale=data["locale"],
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderStatusView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        params = request.query_params
        identifier = params.get("order_id") or params.get("orderId")
        if not identifier:
            raise ValidationError({"order_id": "This query parameter is required."})
        return Response({"status": OrderService.get_status(identifier)})


class MyOrdersView(ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    filterset_fields = ["status"]

    def get_queryset(self):
        return OrderService.list_for_user(self.request.user)


class AdminOrderViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAdminUser]
    serializer_class = AdminOrderSerializer
    filterset_class = AdminOrderFilter
    queryset = (
        Order.objects.select_related("user")
        .prefetch_related("items", "timeline")
        .order_by("-created_at")
    )

    def get_object(self):
        # Accepts the primary key or the ORD-... code
        order = OrderService.get_by_identifier(self.kwargs["pk"])
        self.check_object_permissions(self.request, order)
        return order


class AdminOrderStatusView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService().transition_status(
            serializer.validated_data["order_id"],
            serializer.validated_data["status"],
            actor=request.user,
        )
        return Response(AdminOrderSerializer(order).data)
