import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import HttpResponseRedirect
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.orders.models import Order
from apps.utils.exceptions import OrderNotFound
from apps.utils.throttle import CheckoutRateThrottle
from .gateway import GatewayConfig, verify_signature
from .serializers import CreatePaymentSerializer, PaymentCallbackSerializer
from .services import CallbackReconciler, PaymentService

logger = logging.getLogger(__name__)


def _locale(request):
    locale = request.query_params.get("locale", Order.Locale.KA)
    return locale if locale in Order.Locale.values else Order.Locale.KA


def _payload_dict(data):
    # Flitt may post form-encoded bodies
    return data.dict() if hasattr(data, "dict") else dict(data)


class HttpResponseSeeOther(HttpResponseRedirect):
    status_code = 303


class CreatePaymentView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [CheckoutRateThrottle]

    def post(self, request):
        serializer = CreatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        link = PaymentService().create_payment_link(
            serializer.validated_data["order_id"], locale=_locale(request)
        )
        return Response({"redirect_url": link.redirect_url, "response": link.response})


class PaymentCallbackView(APIView):
    """
    Server-to-server notification from Flitt.

    Anything past payload validation is acknowledged with {"status": "ok"} so
    the gateway stops retrying; problems are logged and kept in WebhookLog.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        payload = _payload_dict(request.data)

        serializer = PaymentCallbackSerializer(data=payload)
        if not serializer.is_valid():
            logger.warning("Malformed Flitt callback: %s", serializer.errors)
            raise ValidationError(serializer.errors)

        config = GatewayConfig.from_settings()
        if config.verify_callback_signature and not verify_signature(payload, config.secret_key):
            logger.critical("Flitt callback with invalid signature for order %s",
                            serializer.validated_data["order_id"])
            return Response(
                {"error": "Invalid signature", "code": "invalid_signature"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data
        try:
            CallbackReconciler().handle_callback(
                data["order_id"], data["order_status"], data["amount"], payload=payload
            )
        except OrderNotFound:
            logger.error("Flitt callback for unknown order %s", data["order_id"])
        except Exception:
            logger.exception("Flitt callback processing failed for order %s", data["order_id"])

        return Response({"status": "ok"})


class PaymentReturnView(APIView):
    """
    Browser lands here after the hosted checkout; bounce to the frontend.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def _redirect(self, request, data):
        order_id = data.get("order_id") or data.get("ORDER_ID")
        if not isinstance(order_id, str) or not order_id:
            raise ValidationError({"order_id": "Order ID not found in return payload"})

        query = urlencode({"orderId": order_id})
        url = f"{settings.FRONTEND_URL}{_locale(request)}/payment-status?{query}"
        return HttpResponseSeeOther(url)

    def post(self, request):
        data = _payload_dict(request.data)
        if not (data.get("order_id") or data.get("ORDER_ID")):
            data = request.query_params
        return self._redirect(request, data)

    def get(self, request):
        return self._redirect(request, request.query_params)
