# apps/notifications/services.py
import logging

logger = logging.getLogger(__name__)

ORDER_PAID = "order_paid"
ORDER_STATUS_CHANGED = "order_status_changed"


def _enqueue(kind, order, recipient, **extra):
    """
    Fire-and-forget. A broker outage must never reach the caller, which is
    usually a status transition that has already committed.
    """
    from .tasks import send_order_email_task

    try:
        send_order_email_task.delay(kind, str(order.pk), recipient, **extra)
    except Exception:
        logger.exception(
            "Could not enqueue %s email for order %s", kind, order.uuid,
            extra={"order_code": order.uuid},
        )
        return False
    return True


def send_order_paid(order, recipient):
    return _enqueue(ORDER_PAID, order, recipient)


def send_order_status_changed(order, recipient, old_status, new_status):
    return _enqueue(
        ORDER_STATUS_CHANGED, order, recipient, old_status=old_status, new_status=new_status
    )
