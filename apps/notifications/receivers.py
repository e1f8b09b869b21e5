# apps/notifications/receivers.py
import logging

from django.dispatch import receiver

from apps.orders.signals import order_paid, order_status_changed
from .services import send_order_paid, send_order_status_changed

logger = logging.getLogger(__name__)


@receiver(order_paid)
def handle_order_paid(sender, order, **kwargs):
    """
    First approval of an order -> payment confirmation email.
    """
    recipient = order.recipient_email
    if not recipient:
        logger.info("Order %s has no email on file, skipping payment confirmation", order.uuid)
        return
    send_order_paid(order, recipient)


@receiver(order_status_changed)
def handle_order_status_changed(sender, order, old_status, new_status, **kwargs):
    recipient = order.recipient_email
    if not recipient:
        logger.info("Order %s has no email on file, skipping status email", order.uuid)
        return
    send_order_status_changed(order, recipient, old_status, new_status)
