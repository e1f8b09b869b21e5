import hashlib
from decimal import Decimal
from unittest import mock

import requests
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache
from django.core.checks import run_checks
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Product
from apps.orders.models import Order
from apps.orders.services import OrderService
from apps.utils.exceptions import ConfigurationError, GatewayRequestFailed
from .gateway import FlittClient, GatewayConfig, sign, verify_signature
from .models import WebhookLog

User = get_user_model()

CUSTOMER = {
    "name": "Nino",
    "surname": "Beridze",
    "email": "nino@example.com",
    "personal_id": "01017012345",
    "phone": "577955582",
    "address": "Rustaveli Ave 1, Tbilisi",
}

CHECKOUT_URL = "https://pay.flitt.test/merchants/abc/checkout"


def gateway_response(payload=None, status_code=200):
    resp = mock.Mock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {
        "response": {"response_status": "success", "checkout_url": CHECKOUT_URL}
    }
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    else:
        resp.raise_for_status.return_value = None
    return resp


class PaymentFixtureMixin:
    def make_order(self, quantity=2, locale="en"):
        product = Product.objects.create(name_ka="დრელი", name_en="Drill", price=Decimal("50.00"))
        # 2 x 50.00 + 10.00 tbilisi delivery = 110.00
        return OrderService().create(
            customer=CUSTOMER,
            delivery_zone="tbilisi",
            items=[{"product_id": product.id, "quantity": quantity}],
            locale=locale,
        )


class SignatureTests(TestCase):
    def test_values_joined_in_key_order_after_secret(self):
        params = {"order_id": "42", "amount": 11000, "currency": "GEL", "merchant_id": "1549901"}
        expected = hashlib.sha1("test|11000|GEL|1549901|42".encode("utf-8")).hexdigest()
        self.assertEqual(sign(params, "test"), expected)

    def test_empty_values_and_signature_key_are_skipped(self):
        base = {"amount": 100, "currency": "GEL"}
        noisy = dict(base, lang=None, order_desc="", signature="zzz")
        self.assertEqual(sign(noisy, "s3cr3t"), sign(base, "s3cr3t"))

    def test_verify_signature(self):
        payload = {"order_id": "42", "order_status": "approved", "amount": "11000"}
        payload["signature"] = sign(payload, "test")

        self.assertTrue(verify_signature(payload, "test"))
        self.assertFalse(verify_signature(dict(payload, amount="1"), "test"))
        self.assertFalse(verify_signature({"order_id": "42"}, "test"))


class FlittClientTests(PaymentFixtureMixin, TestCase):
    def setUp(self):
        cache.clear()
        self.order = self.make_order()
        self.client_ = FlittClient(GatewayConfig.from_settings())

    @mock.patch("apps.payments.gateway.requests.post")
    def test_builds_signed_request(self, post):
        post.return_value = gateway_response()

        link = self.client_.create_payment_link(self.order, locale="en")

        self.assertEqual(link.redirect_url, CHECKOUT_URL)
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://pay.flitt.test/api/checkout/url")
        self.assertEqual(kwargs["timeout"], 10.0)

        body = kwargs["json"]["request"]
        self.assertEqual(body["amount"], 11000)
        self.assertEqual(body["currency"], "GEL")
        self.assertEqual(body["lang"], "en")
        self.assertEqual(body["merchant_id"], "1549901")
        self.assertEqual(body["order_id"], str(self.order.pk))
        self.assertEqual(body["response_url"], "https://api.shop.test/api/v1/orders/return/?locale=en")
        self.assertEqual(body["server_callback_url"], "https://api.shop.test/api/v1/orders/callback/")

        unsigned = {k: v for k, v in body.items() if k != "signature"}
        self.assertEqual(body["signature"], sign(unsigned, "test"))

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PENDING)

    @mock.patch("apps.payments.gateway.requests.post")
    def test_transport_error_is_generic_gateway_failure(self, post):
        post.side_effect = requests.Timeout("read timed out")
        with self.assertRaises(GatewayRequestFailed) as ctx:
            self.client_.create_payment_link(self.order)
        self.assertEqual(ctx.exception.message, "Payment gateway request failed")

    @mock.patch("apps.payments.gateway.requests.post")
    def test_non_2xx_and_missing_checkout_url(self, post):
        post.return_value = gateway_response(status_code=500)
        with self.assertRaises(GatewayRequestFailed):
            self.client_.create_payment_link(self.order)

        post.return_value = gateway_response({"response": {"response_status": "failure",
                                                           "error_message": "Invalid merchant"}})
        with self.assertRaises(GatewayRequestFailed):
            self.client_.create_payment_link(self.order)

    @mock.patch("apps.payments.gateway.requests.post")
    def test_circuit_opens_after_repeated_failures(self, post):
        post.side_effect = requests.ConnectionError("refused")

        for _ in range(6):
            with self.assertRaises(GatewayRequestFailed):
                self.client_.create_payment_link(self.order)

        self.assertEqual(post.call_count, 5)

    def test_missing_secret_is_configuration_error(self):
        config = GatewayConfig(
            merchant_id="1549901", secret_key=None,
            checkout_url="https://pay.flitt.test/api/checkout/url",
            api_url="https://api.shop.test/api/v1/",
        )
        with self.assertRaises(ConfigurationError):
            FlittClient(config).create_payment_link(self.order)

    @override_settings(FLITT_SECRET_KEY=None)
    def test_missing_secret_reported_by_system_check(self):
        ids = [msg.id for msg in run_checks()]
        self.assertIn("payments.E001", ids)


class CreatePaymentApiTests(PaymentFixtureMixin, APITestCase):
    def setUp(self):
        cache.clear()
        self.order = self.make_order()
        self.url = reverse("payment-create")

    @mock.patch("apps.payments.gateway.requests.post")
    def test_returns_redirect_url(self, post):
        post.return_value = gateway_response()

        resp = self.client.post(f"{self.url}?locale=en", {"order_id": self.order.uuid}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["redirect_url"], CHECKOUT_URL)
        self.assertIn("response", resp.data)

    @mock.patch("apps.payments.gateway.requests.post")
    def test_accepts_camel_case_order_id(self, post):
        post.return_value = gateway_response()

        resp = self.client.post(self.url, {"orderId": str(self.order.pk)}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["redirect_url"], CHECKOUT_URL)

    @mock.patch("apps.payments.gateway.requests.post")
    def test_gateway_down_is_502(self, post):
        post.side_effect = requests.ConnectionError("refused")

        resp = self.client.post(self.url, {"order_id": str(self.order.pk)}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(resp.data, {"error": "Payment gateway request failed", "code": "gateway_error"})

    @mock.patch("apps.payments.gateway.requests.post")
    def test_paid_order_is_not_payable(self, post):
        OrderService().mark_paid(self.order.pk)

        resp = self.client.post(self.url, {"order_id": self.order.uuid}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        post.assert_not_called()

    def test_unknown_order(self):
        resp = self.client.post(self.url, {"order_id": "ORD-19990101-XXXXXX"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class CallbackTests(PaymentFixtureMixin, APITestCase):
    def setUp(self):
        self.order = self.make_order()
        self.url = reverse("payment-callback")

    def callback(self, order_status="approved", amount="11000", order_id=None, **extra):
        data = {
            "order_id": order_id or str(self.order.pk),
            "order_status": order_status,
            "amount": amount,
            **extra,
        }
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.post(self.url, data, format="json")

    def test_approved_callback_marks_paid_and_notifies(self):
        resp = self.callback()

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {"status": "ok"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PAID)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(WebhookLog.objects.get().outcome, WebhookLog.Outcome.PAID)

    def test_replayed_approval_sends_one_email(self):
        self.callback()
        resp = self.callback()

        self.assertEqual(resp.data, {"status": "ok"})
        self.assertEqual(len(mail.outbox), 1)
        outcomes = sorted(WebhookLog.objects.values_list("outcome", flat=True))
        self.assertEqual(outcomes, ["ignored", "paid"])

    def test_declined_marks_failed(self):
        resp = self.callback(order_status="declined")

        self.assertEqual(resp.data, {"status": "ok"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.FAILED)
        self.assertEqual(len(mail.outbox), 0)

    def test_amount_mismatch_marks_failed(self):
        resp = self.callback(amount="100")

        self.assertEqual(resp.data, {"status": "ok"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.FAILED)
        self.assertEqual(WebhookLog.objects.get().outcome, WebhookLog.Outcome.AMOUNT_MISMATCH)

    def test_late_decline_keeps_paid(self):
        self.callback()
        self.callback(order_status="declined")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PAID)

    def test_retry_after_decline_can_pay(self):
        self.callback(order_status="declined")
        self.callback()

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PAID)
        self.assertEqual(len(mail.outbox), 1)

    def test_lookup_by_order_code(self):
        self.callback(order_id=self.order.uuid)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PAID)

    def test_unknown_order_is_acknowledged(self):
        resp = self.callback(order_id="ORD-19990101-XXXXXX")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {"status": "ok"})
        self.assertEqual(WebhookLog.objects.get().outcome, WebhookLog.Outcome.NOT_FOUND)

    def test_form_encoded_callback(self):
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.post(self.url, {
                "order_id": str(self.order.pk), "order_status": "approved", "amount": "11000",
            })

        self.assertEqual(resp.data, {"status": "ok"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PAID)

    def test_malformed_payload_is_rejected(self):
        resp = self.callback(amount="110.00")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.post(self.url, {"order_status": "approved"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(WebhookLog.objects.count(), 0)

    def test_unexpected_error_is_still_acknowledged(self):
        with mock.patch("apps.payments.views.CallbackReconciler.handle_callback",
                        side_effect=RuntimeError("db hiccup")):
            resp = self.callback()

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {"status": "ok"})

    @override_settings(FLITT_VERIFY_CALLBACK_SIGNATURE=True)
    def test_signature_checked_when_enabled(self):
        resp = self.callback(signature="forged")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PENDING)

        payload = {"order_id": str(self.order.pk), "order_status": "approved", "amount": "11000"}
        resp = self.callback(signature=sign(payload, "test"))
        self.assertEqual(resp.data, {"status": "ok"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PAID)

    def test_unsigned_callback_rejected_when_setting_is_absent(self):
        with self.settings():
            del settings.FLITT_VERIFY_CALLBACK_SIGNATURE
            resp = self.callback()

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "invalid_signature")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PENDING)
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(WebhookLog.objects.count(), 0)

    def test_signature_and_card_details_are_not_stored(self):
        self.callback(
            signature="abc", masked_card="444455XXXXXX1111", sender_email="payer@example.com",
            payment_id="987",
        )

        stored = WebhookLog.objects.get().payload
        self.assertEqual(stored["payment_id"], "987")
        for key in ("signature", "masked_card", "sender_email"):
            self.assertNotIn(key, stored)


class PaymentReturnTests(APITestCase):
    def setUp(self):
        self.url = reverse("payment-return")

    def test_post_redirects_to_status_page(self):
        resp = self.client.post(f"{self.url}?locale=en", {"order_id": "abc123"})

        self.assertEqual(resp.status_code, 303)
        self.assertEqual(resp["Location"], "https://shop.test/en/payment-status?orderId=abc123")

    def test_uppercase_key_and_default_locale(self):
        resp = self.client.post(self.url, {"ORDER_ID": "abc123"})

        self.assertEqual(resp.status_code, 303)
        self.assertEqual(resp["Location"], "https://shop.test/ka/payment-status?orderId=abc123")

    def test_get_reads_query_string(self):
        resp = self.client.get(self.url, {"order_id": "abc123", "locale": "fr"})

        self.assertEqual(resp.status_code, 303)
        self.assertEqual(resp["Location"], "https://shop.test/ka/payment-status?orderId=abc123")

    def test_missing_order_id(self):
        resp = self.client.post(self.url, {})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_order_id_is_encoded_into_redirect(self):
        resp = self.client.post(f"{self.url}?locale=en", {"order_id": "abc&locale=xx#frag"})

        self.assertEqual(resp.status_code, 303)
        self.assertEqual(
            resp["Location"],
            "https://shop.test/en/payment-status?orderId=abc%26locale%3Dxx%23frag",
        )
