from django.db import models

from apps.orders.models import Order
from apps.utils.models import TimestampedModel


class WebhookLog(TimestampedModel):
    """
    One row per gateway callback, whatever happened to it.
    """
    class Outcome(models.TextChoices):
        PAID = "paid", "Marked Paid"
        FAILED = "failed", "Marked Failed"
        AMOUNT_MISMATCH = "amount_mismatch", "Amount Mismatch"
        IGNORED = "ignored", "Ignored (no change)"
        NOT_FOUND = "not_found", "Order Not Found"
        ERROR = "error", "Processing Error"

    provider = models.CharField(max_length=20, default="flitt")
    order = models.ForeignKey(Order, null=True, blank=True, on_delete=models.PROTECT, related_name="webhook_logs")
    order_ref = models.CharField(max_length=64, db_index=True)
    gateway_status = models.CharField(max_length=32)
    amount = models.CharField(max_length=20)
    outcome = models.CharField(max_length=20, choices=Outcome.choices)
    payload = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "payment_webhook_logs"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.provider} - {self.order_ref} - {self.outcome}"
