from django.core.validators import MinValueValidator
from django.db import models

from .order import Order

__all__ = ["OrderItem"]


class OrderItem(models.Model):
    """
    Immutable snapshot of one ordered product.
    product_id is a plain value, not a FK, so the line survives catalog deletes.
    """
    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name="items")
    position = models.PositiveSmallIntegerField(default=0)

    product_id = models.UUIDField(db_index=True)
    name = models.JSONField(help_text='{"ka": "...", "en": "..."}')
    image = models.CharField(max_length=500, blank=True)
    external_code = models.CharField(max_length=64, blank=True, null=True, db_index=True)

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    line_total = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])

    class Meta:
        db_table = "order_items"
        ordering = ["position"]

    def __str__(self):
        return f"{self.quantity}x {self.name.get('en') or self.name.get('ka')}"
