# apps/site_settings/models.py
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.utils.models import TimestampedModel


class SiteSettings(TimestampedModel):
    """
    Single-row store settings (key = "main").
    Only the delivery rules are consumed by checkout.
    """
    key = models.CharField(max_length=20, unique=True, default="main")

    delivery_tbilisi_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("10.00"),
        validators=[MinValueValidator(0)],
    )
    delivery_tbilisi_free_over = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("150.00"),
        validators=[MinValueValidator(0)],
    )
    delivery_region_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("15.00"),
        validators=[MinValueValidator(0)],
    )
    delivery_region_free_over = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("300.00"),
        validators=[MinValueValidator(0)],
    )

    class Meta:
        db_table = "site_settings"
        verbose_name_plural = "Site settings"

    def __str__(self):
        return f"Settings ({self.key})"

    def delivery_rules(self):
        return {
            "tbilisi": {
                "fee": self.delivery_tbilisi_price,
                "free_over": self.delivery_tbilisi_free_over,
            },
            "region": {
                "fee": self.delivery_region_price,
                "free_over": self.delivery_region_free_over,
            },
        }
