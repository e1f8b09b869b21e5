# apps/catalog/models.py
from django.db import models

from apps.utils.models import TimestampedModel


class Product(TimestampedModel):
    """
    Sellable product. Orders never read it after checkout; they keep
    their own snapshot of price, name and image.
    """
    name_ka = models.CharField(max_length=255)
    name_en = models.CharField(max_length=255, blank=True)
    image_url = models.CharField(max_length=500, blank=True, help_text="Main product image URL")

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text="Customer-facing selling price",
    )

    # Code of the product in the external accounting system (FINA)
    external_code = models.CharField(max_length=64, blank=True, null=True, db_index=True)

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name_ka"]
        indexes = [
            models.Index(fields=["is_active"], name="products_is_active_idx"),
        ]

    def __str__(self):
        return self.name_en or self.name_ka

    @property
    def name(self):
        return {"ka": self.name_ka, "en": self.name_en or self.name_ka}
