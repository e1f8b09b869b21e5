# apps/notifications/tests.py
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings

from apps.catalog.models import Product
from apps.orders.services import OrderService
from . import messages
from .receivers import handle_order_paid
from .services import send_order_paid, send_order_status_changed
from .tasks import send_order_email_task

User = get_user_model()


class NotificationFixtureMixin:
    def make_order(self, locale="ka", email="nino@example.com", user=None):
        product = Product.objects.create(name_ka="ხერხი", price=Decimal("75.00"))
        return OrderService().create(
            customer={
                "name": "Nino", "surname": "Beridze", "email": email,
                "personal_id": "01017012345", "phone": "577955582", "address": "Tbilisi",
            },
            delivery_zone="region",
            items=[{"product_id": product.id, "quantity": 2}],
            user=user,
            locale=locale,
        )


class MessageTests(TestCase):
    def test_status_labels_are_localized(self):
        self.assertEqual(messages.status_label("en", "cancelled"), "Your order has been cancelled")
        self.assertEqual(messages.status_label("ka", "paid"), "გადახდილია")
        self.assertEqual(messages.status_label("de", "paid"), "გადახდილია")

    def test_render_fills_order_context(self):
        subject, body = messages.render("order_paid", "en", {
            "code": "ORD-20240131-AAAAAA", "subtotal": "150.00",
            "delivery_price": "15.00", "total": "165.00", "status_url": "",
        })
        self.assertEqual(subject, "Payment successful")
        self.assertIn("ORD-20240131-AAAAAA", body)
        self.assertIn("Total: 165.00 GEL", body)


class OrderEmailTaskTests(NotificationFixtureMixin, TestCase):
    def test_paid_email_in_georgian(self):
        order = self.make_order(locale="ka")
        send_order_email_task.apply(args=["order_paid", str(order.pk), "nino@example.com"])

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, "გადახდა წარმატებულია")
        self.assertEqual(message.to, ["nino@example.com"])
        self.assertIn(order.uuid, message.body)
        self.assertIn(f"https://shop.test/ka/payment-status?orderId={order.pk}", message.body)

    def test_status_email_uses_new_status_label(self):
        order = self.make_order(locale="en")
        send_order_email_task.apply(
            args=["order_status_changed", str(order.pk), "nino@example.com"],
            kwargs={"old_status": "paid", "new_status": "shipped"},
        )

        self.assertEqual(mail.outbox[0].subject, "Order status updated")
        self.assertIn("Your order has been shipped", mail.outbox[0].body)

    @override_settings(TEST_EMAIL_RECIPIENT="qa@shop.test", DEBUG=True)
    def test_test_inbox_override(self):
        order = self.make_order()
        send_order_email_task.apply(args=["order_paid", str(order.pk), "nino@example.com"])

        self.assertEqual(mail.outbox[0].to, ["qa@shop.test"])

    def test_unknown_order_is_dropped(self):
        send_order_email_task.apply(
            args=["order_paid", "00000000-0000-0000-0000-000000000000", "nino@example.com"]
        )
        self.assertEqual(len(mail.outbox), 0)


class NotificationDispatchTests(NotificationFixtureMixin, TestCase):
    def test_enqueue_failure_is_swallowed(self):
        order = self.make_order()
        with mock.patch.object(send_order_email_task, "delay", side_effect=ConnectionError("broker down")):
            self.assertFalse(send_order_paid(order, "nino@example.com"))
            self.assertFalse(send_order_status_changed(order, "nino@example.com", "paid", "shipped"))

    def test_recipient_falls_back_to_account_email(self):
        user = User.objects.create_user(username="nino", password="pass12345", email="acct@example.com")
        order = self.make_order(email="", user=user)

        with mock.patch("apps.notifications.receivers.send_order_paid") as send:
            handle_order_paid(sender=None, order=order)

        send.assert_called_once_with(order, "acct@example.com")

    def test_no_recipient_skips_email(self):
        order = self.make_order(email="")

        with mock.patch("apps.notifications.receivers.send_order_paid") as send:
            handle_order_paid(sender=None, order=order)

        send.assert_not_called()
