import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from apps.orders.models import Order
from . import messages
from .services import ORDER_PAID

logger = logging.getLogger(__name__)


def _resolve_recipient(recipient):
    # Outside production every customer email goes to one test inbox
    if settings.DEBUG and settings.TEST_EMAIL_RECIPIENT:
        return settings.TEST_EMAIL_RECIPIENT
    return recipient


def _context(order, new_status=None):
    return {
        "code": order.uuid,
        "subtotal": order.subtotal,
        "delivery_price": order.delivery_price,
        "total": order.total,
        "status_label": messages.status_label(order.locale, new_status or order.status),
        "status_url": f"{settings.FRONTEND_URL}{order.locale}/payment-status?orderId={order.pk}",
    }


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def send_order_email_task(self, kind: str, order_id: str, recipient: str,
                          old_status: str = None, new_status: str = None):
    try:
        order = Order.objects.get(pk=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found, {kind} email dropped.")
        return

    subject, body = messages.render(kind, order.locale, _context(order, new_status))
    to = _resolve_recipient(recipient)

    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [to])
    except Exception as exc:
        logger.exception(f"Failed to send {kind} email for order {order.uuid}")
        raise self.retry(exc=exc)

    if kind == ORDER_PAID:
        logger.info(f"Payment confirmation sent for order {order.uuid}")
    else:
        logger.info(f"Status email ({old_status} -> {new_status}) sent for order {order.uuid}")
