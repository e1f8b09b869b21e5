# apps/site_settings/tests.py
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from .models import SiteSettings
from .services import get_delivery_settings

User = get_user_model()


class DeliverySettingsTests(APITestCase):
    def test_defaults_are_created_on_first_read(self):
        rules = get_delivery_settings()

        self.assertEqual(SiteSettings.objects.count(), 1)
        self.assertEqual(rules["tbilisi"], {"fee": Decimal("10.00"), "free_over": Decimal("150.00")})
        self.assertEqual(rules["region"], {"fee": Decimal("15.00"), "free_over": Decimal("300.00")})

    def test_public_read(self):
        resp = self.client.get(reverse("site-settings"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["delivery_region_price"], "15.00")

    def test_update_requires_admin(self):
        user = User.objects.create_user(username="shopper", password="pass12345")
        self.client.force_authenticate(user)
        resp = self.client.patch(reverse("site-settings"), {"delivery_tbilisi_price": "7.00"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_updates_delivery_rules(self):
        admin = User.objects.create_user(username="boss", password="pass12345", is_staff=True)
        self.client.force_authenticate(admin)
        resp = self.client.patch(reverse("site-settings"), {"delivery_tbilisi_price": "7.00"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(get_delivery_settings()["tbilisi"]["fee"], Decimal("7.00"))
        # untouched fields keep their values
        self.assertEqual(get_delivery_settings()["tbilisi"]["free_over"], Decimal("150.00"))
