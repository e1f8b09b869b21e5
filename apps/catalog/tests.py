# apps/catalog/tests.py
import uuid
from decimal import Decimal

from django.test import TestCase

from .models import Product
from .services import get_products_by_ids


class CatalogReadTests(TestCase):
    def setUp(self):
        self.drill = Product.objects.create(
            name_ka="დრელი", name_en="Drill", image_url="/img/drill.jpg",
            price=Decimal("50.00"), external_code="FN-001",
        )

    def test_returns_snapshot_fields_for_existing_ids(self):
        missing = uuid.uuid4()
        rows = get_products_by_ids([self.drill.id, missing])

        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row["id"], str(self.drill.id))
        self.assertEqual(row["name"], {"ka": "დრელი", "en": "Drill"})
        self.assertEqual(row["price"], Decimal("50.00"))
        self.assertEqual(row["external_code"], "FN-001")

    def test_english_name_falls_back_to_georgian(self):
        product = Product.objects.create(name_ka="ხერხი", price=Decimal("12.00"))
        self.assertEqual(product.name, {"ka": "ხერხი", "en": "ხერხი"})
