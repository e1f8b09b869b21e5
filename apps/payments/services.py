import logging

from apps.orders.pricing import to_minor_units
from apps.orders.services import GATEWAY_PAYABLE, OrderService
from apps.utils.exceptions import OrderNotFound, OrderNotPayable
from apps.utils.logging import SENSITIVE_KEYS
from .gateway import FlittClient, GatewayConfig
from .models import WebhookLog

logger = logging.getLogger(__name__)

# Card and payer details Flitt echoes back in callbacks
CALLBACK_PRIVATE_KEYS = SENSITIVE_KEYS | {
    "response_signature_string", "masked_card", "card_bin", "rectoken",
    "sender_email", "sender_cell_phone", "sender_account", "additional_info",
}


def storable_payload(payload):
    return {k: v for k, v in (payload or {}).items() if str(k).lower() not in CALLBACK_PRIVATE_KEYS}


class PaymentService:
    """
    Issues payment links for existing orders.
    """

    def __init__(self, client=None):
        self.client = client or FlittClient(GatewayConfig.from_settings())

    def create_payment_link(self, order_id, locale="ka"):
        order = OrderService.get_by_identifier(order_id)

        if order.status not in GATEWAY_PAYABLE:
            raise OrderNotPayable(order.status)

        link = self.client.create_payment_link(order, locale)
        logger.info("Payment link issued for order %s", order.uuid, extra={"order_code": order.uuid})
        return link


class CallbackReconciler:
    """
    Applies a gateway callback to the order it names.

    Gateways retry and reorder callbacks, so every branch must be safe to
    replay. The result is always an acknowledgement; the outcome is kept in
    WebhookLog.
    """
    APPROVED = "approved"

    def __init__(self, order_service=None):
        self.orders = order_service or OrderService()

    def handle_callback(self, order_ref, gateway_status, amount_minor, payload=None) -> dict:
        log = WebhookLog(
            order_ref=str(order_ref)[:64],
            gateway_status=str(gateway_status)[:32],
            amount=str(amount_minor)[:20],
            payload=storable_payload(payload),
        )
        try:
            log.outcome = self._reconcile(log, order_ref, gateway_status, amount_minor)
        except OrderNotFound:
            log.outcome = WebhookLog.Outcome.NOT_FOUND
            log.save()
            raise
        except Exception:
            log.outcome = WebhookLog.Outcome.ERROR
            log.save()
            raise

        log.save()
        return {"status": "ok"}

    def _reconcile(self, log, order_ref, gateway_status, amount_minor):
        order = self.orders.get_by_identifier(order_ref)
        log.order = order

        if gateway_status != self.APPROVED:
            _, changed = self.orders.mark_failed(
                order.pk, reason=f"Gateway reported '{gateway_status}'."
            )
            return WebhookLog.Outcome.FAILED if changed else WebhookLog.Outcome.IGNORED

        expected = to_minor_units(order.total)
        if int(amount_minor) != expected:
            logger.warning(
                "Amount mismatch for order %s: received %s, expected %s",
                order.uuid, amount_minor, expected,
                extra={"order_code": order.uuid},
            )
            self.orders.mark_failed(
                order.pk, reason=f"Amount mismatch: received {amount_minor}, expected {expected}."
            )
            return WebhookLog.Outcome.AMOUNT_MISMATCH

        _, changed = self.orders.mark_paid(order.pk)
        return WebhookLog.Outcome.PAID if changed else WebhookLog.Outcome.IGNORED
