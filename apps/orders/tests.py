# apps/orders/tests.py
import re
import uuid
from datetime import date
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Product
from apps.utils.exceptions import (
    ConfigurationError,
    InvalidStatusTransition,
    OrderCodeGenerationError,
    OrderNotFound,
    OrderValidationError,
    ProductNotFound,
)
from .codes import OrderCodeGenerator
from .models import Order, OrderTimeline
from .pricing import DeliveryPricingPolicy, PricingSnapshot, to_minor_units
from .services import OrderService

User = get_user_model()

CODE_RE = re.compile(r"^ORD-\d{8}-[A-Z0-9]{6}$")

CUSTOMER = {
    "name": "Nino",
    "surname": "Beridze",
    "email": "nino@example.com",
    "personal_id": "01017012345",
    "phone": "577955582",
    "address": "Rustaveli Ave 1, Tbilisi",
}

RULES = {
    "tbilisi": {"fee": Decimal("10.00"), "free_over": Decimal("150.00")},
    "region": {"fee": Decimal("15.00"), "free_over": Decimal("300.00")},
}


class OrderFixtureMixin:
    def make_product(self, price="50.00", **kwargs):
        defaults = {"name_ka": "დრელი", "name_en": "Drill", "image_url": "/img/drill.jpg"}
        defaults.update(kwargs)
        return Product.objects.create(price=Decimal(price), **defaults)

    def make_order(self, product, quantity=2, zone="tbilisi", locale="ka", user=None, **customer):
        data = dict(CUSTOMER, **customer)
        return OrderService().create(
            customer=data,
            delivery_zone=zone,
            items=[{"product_id": product.id, "quantity": quantity}],
            user=user,
            locale=locale,
        )


class PricingSnapshotTests(TestCase):
    def setUp(self):
        self.catalog = {
            "p1": {"id": "p1", "name": {"ka": "ა", "en": "A"}, "image": "/a.jpg",
                   "price": Decimal("50.00"), "external_code": "FN-1"},
            "p2": {"id": "p2", "name": {"ka": "ბ", "en": "B"}, "image": "",
                   "price": Decimal("19.99"), "external_code": None},
        }
        self.calls = []

        def reader(ids):
            self.calls.append(list(ids))
            return [self.catalog[i] for i in ids if i in self.catalog]

        self.pricing = PricingSnapshot(catalog_reader=reader)

    def test_prices_come_from_catalog_only(self):
        lines = self.pricing.resolve([
            {"product_id": "p1", "quantity": 2, "price": "0.01"},
            {"product_id": "p2", "quantity": 3},
        ])

        self.assertEqual(lines[0].unit_price, Decimal("50.00"))
        self.assertEqual(lines[0].line_total, Decimal("100.00"))
        self.assertEqual(lines[1].line_total, Decimal("59.97"))
        self.assertEqual(self.pricing.subtotal(lines), Decimal("159.97"))
        self.assertEqual(lines[0].name, {"ka": "ა", "en": "A"})
        self.assertEqual(lines[0].external_code, "FN-1")

    def test_duplicate_ids_are_fetched_once(self):
        self.pricing.resolve([
            {"product_id": "p1", "quantity": 1},
            {"product_id": "p1", "quantity": 4},
        ])
        self.assertEqual(self.calls, [["p1"]])

    def test_missing_products_are_all_reported(self):
        with self.assertRaises(ProductNotFound) as ctx:
            self.pricing.resolve([
                {"product_id": "p1", "quantity": 1},
                {"product_id": "gone-1", "quantity": 1},
                {"product_id": "gone-2", "quantity": 1},
            ])
        self.assertEqual(ctx.exception.missing_ids, ["gone-1", "gone-2"])

    def test_empty_items_rejected(self):
        with self.assertRaises(OrderValidationError):
            self.pricing.resolve([])

    def test_minor_units_round_half_up(self):
        self.assertEqual(to_minor_units(Decimal("110.00")), 11000)
        self.assertEqual(to_minor_units(Decimal("19.995")), 2000)


class DeliveryPricingPolicyTests(TestCase):
    def setUp(self):
        self.policy = DeliveryPricingPolicy(settings_reader=lambda: RULES)

    def test_fee_below_threshold(self):
        self.assertEqual(self.policy.quote("tbilisi", Decimal("100.00")), Decimal("10.00"))
        self.assertEqual(self.policy.quote("region", Decimal("299.99")), Decimal("15.00"))

    def test_free_at_threshold(self):
        self.assertEqual(self.policy.quote("tbilisi", Decimal("150.00")), Decimal("0.00"))
        self.assertEqual(self.policy.quote("region", Decimal("300.00")), Decimal("0.00"))

    def test_unknown_zone_is_a_configuration_error(self):
        with self.assertRaises(ConfigurationError):
            self.policy.quote("batumi", Decimal("10.00"))


class OrderCodeGeneratorTests(TestCase):
    def test_code_format(self):
        code = OrderCodeGenerator(exists=lambda c: False, today=lambda: date(2024, 1, 31)).generate()
        self.assertTrue(CODE_RE.match(code))
        self.assertTrue(code.startswith("ORD-20240131-"))

    def test_regenerates_on_collision(self):
        suffixes = iter(["AAAAAA", "BBBBBB"])
        taken = {"ORD-20240131-AAAAAA"}
        generator = OrderCodeGenerator(
            exists=taken.__contains__,
            suffix_factory=lambda: next(suffixes),
            today=lambda: date(2024, 1, 31),
        )
        self.assertEqual(generator.generate(), "ORD-20240131-BBBBBB")

    def test_gives_up_after_max_attempts(self):
        probes = []

        def exists(code):
            probes.append(code)
            return True

        with self.assertRaises(OrderCodeGenerationError):
            OrderCodeGenerator(exists=exists, max_attempts=10).generate()
        self.assertEqual(len(probes), 10)

    def test_zero_attempts_is_respected(self):
        exists = mock.Mock(return_value=False)

        with self.assertRaises(OrderCodeGenerationError):
            OrderCodeGenerator(exists=exists, max_attempts=0).generate()
        exists.assert_not_called()


class OrderCreateTests(OrderFixtureMixin, TestCase):
    def setUp(self):
        self.drill = self.make_product("50.00", external_code="FN-001")

    def test_totals_with_delivery_fee(self):
        order = self.make_order(self.drill, quantity=2)

        self.assertEqual(order.subtotal, Decimal("100.00"))
        self.assertEqual(order.delivery_price, Decimal("10.00"))
        self.assertEqual(order.total, Decimal("110.00"))
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertTrue(CODE_RE.match(order.uuid))

        item = order.items.get()
        self.assertEqual(item.unit_price, Decimal("50.00"))
        self.assertEqual(item.line_total, Decimal("100.00"))
        self.assertEqual(item.name, {"ka": "დრელი", "en": "Drill"})
        self.assertEqual(item.external_code, "FN-001")
        self.assertEqual(order.timeline.count(), 1)

    def test_free_delivery_at_threshold(self):
        order = self.make_order(self.drill, quantity=3)
        self.assertEqual(order.delivery_price, Decimal("0.00"))
        self.assertEqual(order.total, Decimal("150.00"))

    def test_snapshot_survives_price_change(self):
        order = self.make_order(self.drill, quantity=1)
        Product.objects.filter(pk=self.drill.pk).update(price=Decimal("999.00"))

        order.refresh_from_db()
        self.assertEqual(order.items.get().unit_price, Decimal("50.00"))
        self.assertEqual(order.subtotal, Decimal("50.00"))

    def test_missing_product_persists_nothing(self):
        missing = uuid.uuid4()
        with self.assertRaises(ProductNotFound) as ctx:
            OrderService().create(
                customer=CUSTOMER,
                delivery_zone="tbilisi",
                items=[
                    {"product_id": self.drill.id, "quantity": 1},
                    {"product_id": missing, "quantity": 1},
                ],
            )
        self.assertEqual(ctx.exception.missing_ids, [str(missing)])
        self.assertEqual(Order.objects.count(), 0)

    def test_code_taken_at_insert_is_retried(self):
        suffixes = iter(["AAAAAA", "AAAAAA", "BBBBBB"])
        codes = OrderCodeGenerator(
            exists=lambda code: False,
            suffix_factory=lambda: next(suffixes),
            today=lambda: date(2024, 1, 31),
        )
        service = OrderService(codes=codes)
        items = [{"product_id": self.drill.id, "quantity": 1}]

        first = service.create(customer=CUSTOMER, delivery_zone="region", items=items)
        second = service.create(customer=CUSTOMER, delivery_zone="region", items=items)

        self.assertEqual(first.uuid, "ORD-20240131-AAAAAA")
        self.assertEqual(second.uuid, "ORD-20240131-BBBBBB")
        self.assertEqual(Order.objects.count(), 2)


class OrderTransitionTests(OrderFixtureMixin, TestCase):
    def setUp(self):
        self.drill = self.make_product("50.00")
        self.order = self.make_order(self.drill, locale="en")
        self.service = OrderService()
        self.admin = User.objects.create_user(username="boss", password="pass12345", is_staff=True)

    def test_admin_transition_sends_status_email(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.service.transition_status(self.order.uuid, "paid", actor=self.admin)
        with self.captureOnCommitCallbacks(execute=True):
            self.service.transition_status(self.order.pk, "shipped", actor=self.admin)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.SHIPPED)
        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(mail.outbox[1].subject, "Order status updated")
        self.assertIn("Your order has been shipped", mail.outbox[1].body)
        self.assertEqual(mail.outbox[1].to, ["nino@example.com"])

        entry = self.order.timeline.filter(status="shipped").get()
        self.assertEqual(entry.from_status, "paid")
        self.assertEqual(entry.source, OrderTimeline.Source.ADMIN)
        self.assertEqual(entry.created_by, self.admin)

    def test_same_status_is_a_noop(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.service.transition_status(self.order.pk, "cancelled")
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.service.transition_status(self.order.pk, "cancelled")

        self.assertEqual(len(callbacks), 0)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(self.order.timeline.count(), 2)

    def test_illegal_transitions_rejected(self):
        with self.assertRaises(InvalidStatusTransition):
            self.service.transition_status(self.order.pk, "delivered")

        self.service.transition_status(self.order.pk, "paid")
        with self.assertRaises(InvalidStatusTransition):
            self.service.transition_status(self.order.pk, "failed")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PAID)

    def test_unknown_order(self):
        with self.assertRaises(OrderNotFound):
            self.service.transition_status(uuid.uuid4(), "paid")
        with self.assertRaises(OrderNotFound):
            self.service.transition_status("ORD-19990101-XXXXXX", "paid")

    def test_lost_race_has_no_side_effects(self):
        stale = Order.objects.get(pk=self.order.pk)
        Order.objects.filter(pk=self.order.pk).update(status=Order.Status.PAID)

        changed = OrderService._compare_and_set(
            stale, Order.Status.FAILED, source=OrderTimeline.Source.GATEWAY
        )

        self.assertFalse(changed)
        self.assertEqual(stale.status, Order.Status.PAID)
        self.assertFalse(self.order.timeline.filter(status="failed").exists())

    def test_first_approval_notifies_once(self):
        with self.captureOnCommitCallbacks(execute=True):
            _, first = self.service.mark_paid(self.order.pk)
        with self.captureOnCommitCallbacks(execute=True):
            _, second = self.service.mark_paid(self.order.pk)

        self.assertTrue(first)
        self.assertFalse(second)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Payment successful")

    def test_decline_never_downgrades_paid(self):
        self.service.mark_paid(self.order.pk)
        order, changed = self.service.mark_failed(self.order.pk)

        self.assertFalse(changed)
        self.assertEqual(order.status, Order.Status.PAID)

    def test_failed_order_can_still_be_paid_by_gateway(self):
        self.service.mark_failed(self.order.pk)
        order, changed = self.service.mark_paid(self.order.pk)

        self.assertTrue(changed)
        self.assertEqual(order.status, Order.Status.PAID)

    def test_notification_failure_does_not_fail_transition(self):
        with mock.patch(
            "apps.notifications.tasks.send_order_email_task.delay",
            side_effect=ConnectionError("broker down"),
        ):
            with self.captureOnCommitCallbacks(execute=True):
                order = self.service.transition_status(self.order.pk, "cancelled")

        self.assertEqual(order.status, Order.Status.CANCELLED)
        self.assertEqual(len(mail.outbox), 0)

    def test_receiver_crash_does_not_fail_transition(self):
        with mock.patch(
            "apps.notifications.receivers.send_order_status_changed",
            side_effect=RuntimeError("boom"),
        ):
            with self.captureOnCommitCallbacks(execute=True):
                order = self.service.transition_status(self.order.pk, "paid")

        self.assertEqual(order.status, Order.Status.PAID)


class OrderApiTests(OrderFixtureMixin, APITestCase):
    def setUp(self):
        self.drill = self.make_product("50.00")
        self.user = User.objects.create_user(username="nino", password="pass12345", email="acct@example.com")
        self.admin = User.objects.create_user(username="boss", password="pass12345", is_staff=True)

    def payload(self, **overrides):
        data = dict(CUSTOMER, delivery_zone="tbilisi", locale="en",
                    items=[{"product_id": str(self.drill.id), "quantity": 2, "price": "0.01"}])
        data.update(overrides)
        return data

    def test_create_order_ignores_client_prices(self):
        resp = self.client.post(reverse("order-create"), self.payload(), format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["total"], "110.00")
        self.assertEqual(resp.data["delivery_price"], "10.00")
        self.assertEqual(resp.data["status"], "pending")
        self.assertTrue(CODE_RE.match(resp.data["uuid"]))
        self.assertIsNone(Order.objects.get().user)

    def test_create_attaches_authenticated_user(self):
        self.client.force_authenticate(self.user)
        resp = self.client.post(reverse("order-create"), self.payload(email=""), format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get()
        self.assertEqual(order.user, self.user)
        self.assertEqual(order.recipient_email, "acct@example.com")

    def test_empty_items_is_bad_request(self):
        resp = self.client.post(reverse("order-create"), self.payload(items=[]), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Order.objects.count(), 0)

    def test_unknown_product_is_not_found(self):
        missing = str(uuid.uuid4())
        resp = self.client.post(
            reverse("order-create"),
            self.payload(items=[{"product_id": missing, "quantity": 1}]),
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["missing_ids"], [missing])

    def test_status_lookup_by_id_and_code(self):
        order = self.make_order(self.drill)
        url = reverse("order-status")

        self.assertEqual(self.client.get(url, {"order_id": order.uuid}).data, {"status": "pending"})
        self.assertEqual(self.client.get(url, {"order_id": str(order.pk)}).data, {"status": "pending"})
        self.assertEqual(self.client.get(url, {"orderId": order.uuid}).data, {"status": "pending"})
        self.assertEqual(self.client.get(url).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            self.client.get(url, {"order_id": "ORD-19990101-XXXXXX"}).status_code,
            status.HTTP_404_NOT_FOUND,
        )

    def test_my_orders_only_lists_own(self):
        self.make_order(self.drill, user=self.user)
        self.make_order(self.drill)

        self.client.force_authenticate(self.user)
        resp = self.client.get(reverse("my-orders"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["total"], 1)
        self.assertEqual(len(resp.data["data"]), 1)

    def test_my_orders_status_filter(self):
        paid = self.make_order(self.drill, user=self.user)
        OrderService().mark_paid(paid.pk)
        self.make_order(self.drill, user=self.user)

        self.client.force_authenticate(self.user)
        resp = self.client.get(reverse("my-orders"), {"status": "paid"})

        self.assertEqual(resp.data["total"], 1)
        self.assertEqual(resp.data["data"][0]["uuid"], paid.uuid)

    def test_admin_list_requires_staff(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get(reverse("admin-order-list")).status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_list_filters(self):
        paid = self.make_order(self.drill, email="paid@example.com")
        OrderService().mark_paid(paid.pk)
        self.make_order(self.drill)

        self.client.force_authenticate(self.admin)
        url = reverse("admin-order-list")

        resp = self.client.get(url, {"status": "paid"})
        self.assertEqual(resp.data["total"], 1)
        self.assertEqual(resp.data["data"][0]["uuid"], paid.uuid)

        resp = self.client.get(url, {"email": "paid@"})
        self.assertEqual(resp.data["total"], 1)

        resp = self.client.get(url, {"userEmail": "paid@"})
        self.assertEqual(resp.data["total"], 1)

        for alias in ("finalId", "finaId"):
            resp = self.client.get(url, {alias: paid.uuid[-6:]})
            self.assertEqual(resp.data["total"], 1)
            self.assertEqual(resp.data["data"][0]["uuid"], paid.uuid)

    def test_admin_detail_by_code(self):
        order = self.make_order(self.drill)
        self.client.force_authenticate(self.admin)

        resp = self.client.get(reverse("admin-order-detail", args=[order.uuid]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["personal_id"], CUSTOMER["personal_id"])
        self.assertEqual(len(resp.data["timeline"]), 1)

    def test_admin_status_update(self):
        order = self.make_order(self.drill)
        self.client.force_authenticate(self.admin)
        url = reverse("admin-order-status")

        resp = self.client.post(url, {"order_id": order.uuid, "status": "paid"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "paid")

        resp = self.client.post(url, {"order_id": order.uuid, "status": "pending"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "invalid_transition")

    def test_admin_status_update_accepts_camel_case_order_id(self):
        order = self.make_order(self.drill)
        self.client.force_authenticate(self.admin)

        resp = self.client.post(
            reverse("admin-order-status"), {"orderId": str(order.pk), "status": "cancelled"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "cancelled")
