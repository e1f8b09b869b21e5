from rest_framework import serializers

from apps.orders.serializers import OrderIdAliasMixin
from apps.utils.validators import validate_minor_units


class CreatePaymentSerializer(OrderIdAliasMixin, serializers.Serializer):
    order_id = serializers.CharField(max_length=64)


class PaymentCallbackSerializer(serializers.Serializer):
    """
    Minimal Flitt callback shape. Extra keys (signature, payment_id, ...) are
    tolerated and kept in the raw payload.
    """
    order_id = serializers.CharField(max_length=64)
    order_status = serializers.CharField(max_length=32)
    amount = serializers.CharField(max_length=20, validators=[validate_minor_units])
