from rest_framework import serializers

from apps.utils.validators import validate_personal_id, validate_phone
from .models import Order, OrderItem, OrderTimeline


class OrderIdAliasMixin:
    """
    Accepts the storefront's camelCase `orderId` in place of `order_id`.
    """
    def to_internal_value(self, data):
        if "order_id" not in data and "orderId" in data:
            data = data.dict() if hasattr(data, "dict") else dict(data)
            data["order_id"] = data.pop("orderId")
        return super().to_internal_value(data)


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    """
    Checkout payload. Any price the client sends is ignored; only ids and
    quantities are read from `items`.
    """
    name = serializers.CharField(max_length=100)
    surname = serializers.CharField(max_length=100)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    personal_id = serializers.CharField(validators=[validate_personal_id])
    phone = serializers.CharField(validators=[validate_phone])
    address = serializers.CharField(max_length=500)
    delivery_zone = serializers.ChoiceField(choices=Order.DeliveryZone.choices)
    locale = serializers.ChoiceField(choices=Order.Locale.choices, default=Order.Locale.KA)
    items = OrderItemInputSerializer(many=True, allow_empty=False)


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "product_id", "name", "image", "external_code",
            "quantity", "unit_price", "line_total",
        ]


class OrderTimelineSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderTimeline
        fields = ["from_status", "status", "source", "note", "timestamp"]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "uuid", "status", "status_display", "locale",
            "name", "surname", "email", "phone", "address", "delivery_zone",
            "subtotal", "delivery_price", "total",
            "created_at", "updated_at", "items",
        ]
        read_only_fields = fields


class AdminOrderSerializer(OrderSerializer):
    timeline = OrderTimelineSerializer(many=True, read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["personal_id", "user_email", "timeline"]
        read_only_fields = fields


class UpdateOrderStatusSerializer(OrderIdAliasMixin, serializers.Serializer):
    order_id = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=Order.Status.choices)
