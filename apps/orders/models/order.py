from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.utils.models import TimestampedModel

__all__ = ["Order"]


class Order(TimestampedModel):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending Payment"
        PAID = "paid", "Paid"
        FAILED = "failed", "Payment Failed"
        SHIPPED = "shipped", "Shipped"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"

    class DeliveryZone(models.TextChoices):
        TBILISI = "tbilisi", "Tbilisi"
        REGION = "region", "Region"

    class Locale(models.TextChoices):
        KA = "ka", "Georgian"
        EN = "en", "English"

    # Human-readable code shown to customers and support, e.g. ORD-20240131-7KQ2ZD
    uuid = models.CharField(max_length=32, unique=True, editable=False, db_index=True)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )
    locale = models.CharField(max_length=2, choices=Locale.choices, default=Locale.KA)

    # Customer snapshot
    name = models.CharField(max_length=100)
    surname = models.CharField(max_length=100)
    email = models.EmailField(blank=True)
    personal_id = models.CharField(max_length=11)
    phone = models.CharField(max_length=20)
    address = models.CharField(max_length=500)
    delivery_zone = models.CharField(max_length=20, choices=DeliveryZone.choices)

    # Money, frozen at checkout
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    delivery_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    total = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="orders_status_created_idx"),
        ]

    def __str__(self):
        return f"{self.uuid} [{self.status}]"

    @property
    def recipient_email(self):
        """
        Order email wins; falls back to the placing user's account email.
        """
        if self.email:
            return self.email
        if self.user_id and self.user.email:
            return self.user.email
        return None
