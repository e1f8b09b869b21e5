import uuid as uuid_lib
import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.utils.exceptions import (
    InvalidStatusTransition,
    OrderCodeGenerationError,
    OrderNotFound,
    OrderValidationError,
)
from .codes import OrderCodeGenerator
from .models import Order, OrderItem, OrderTimeline
from .pricing import DeliveryPricingPolicy, PricingSnapshot
from .signals import order_paid, order_status_changed

logger = logging.getLogger(__name__)

S = Order.Status

# Admin-driven lifecycle. failed / delivered / cancelled are terminal here.
ALLOWED_TRANSITIONS = {
    S.PENDING: {S.PAID, S.FAILED, S.CANCELLED},
    S.PAID: {S.SHIPPED, S.CANCELLED},
    S.SHIPPED: {S.DELIVERED, S.CANCELLED},
    S.FAILED: set(),
    S.DELIVERED: set(),
    S.CANCELLED: set(),
}

# Gateway approval may also recover a previously declined order.
GATEWAY_PAYABLE = {S.PENDING, S.FAILED}
GATEWAY_FAILABLE = {S.PENDING}

CUSTOMER_FIELDS = ("name", "surname", "email", "personal_id", "phone", "address")

# Retries when the unique index catches a code the probe missed
INSERT_ATTEMPTS = 3


def order_lookup(identifier) -> Q:
    """
    Orders are addressed either by primary key or by the ORD-... code.
    """
    value = str(identifier).strip()
    try:
        return Q(pk=uuid_lib.UUID(value))
    except ValueError:
        return Q(uuid=value)


class OrderService:

    def __init__(self, pricing=None, delivery=None, codes=None):
        self.pricing = pricing or PricingSnapshot()
        self.delivery = delivery or DeliveryPricingPolicy()
        self.codes = codes or OrderCodeGenerator()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create(self, customer: dict, delivery_zone: str, items: list, user=None, locale="ka") -> Order:
        """
        Prices every line from the catalog, adds the zone delivery fee and
        persists the order with its items as one unit.
        """
        lines = self.pricing.resolve(items)
        subtotal = self.pricing.subtotal(lines)
        delivery_price = self.delivery.quote(delivery_zone, subtotal)
        total = subtotal + delivery_price

        fields = {name: customer.get(name) or "" for name in CUSTOMER_FIELDS}

        for attempt in range(1, INSERT_ATTEMPTS + 1):
            code = self.codes.generate()
            try:
                with transaction.atomic():
                    order = Order.objects.create(
                        uuid=code,
                        user=user if user is not None and user.is_authenticated else None,
                        locale=locale,
                        delivery_zone=delivery_zone,
                        subtotal=subtotal,
                        delivery_price=delivery_price,
                        total=total,
                        status=S.PENDING,
                        **fields,
                    )
                    OrderItem.objects.bulk_create([
                        OrderItem(
                            order=order,
                            position=position,
                            product_id=line.product_id,
                            name=line.name,
                            image=line.image,
                            external_code=line.external_code,
                            quantity=line.quantity,
                            unit_price=line.unit_price,
                            line_total=line.line_total,
                        )
                        for position, line in enumerate(lines)
                    ])
                    OrderTimeline.objects.create(
                        order=order,
                        status=S.PENDING,
                        source=OrderTimeline.Source.SYSTEM,
                        note="Order created, waiting for payment.",
                    )
            except IntegrityError:
                if not Order.objects.filter(uuid=code).exists():
                    raise
                logger.warning("Order code %s taken at insert (attempt %s)", code, attempt)
                continue

            logger.info(
                "Order %s created: subtotal=%s delivery=%s total=%s",
                order.uuid, subtotal, delivery_price, total,
                extra={"order_code": order.uuid},
            )
            return order

        raise OrderCodeGenerationError("Order code kept colliding at insert time")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @staticmethod
    def get_by_identifier(identifier) -> Order:
        order = Order.objects.filter(order_lookup(identifier)).first()
        if order is None:
            raise OrderNotFound(identifier)
        return order

    @staticmethod
    def get_status(identifier) -> str:
        status = (
            Order.objects.filter(order_lookup(identifier))
            .values_list("status", flat=True)
            .first()
        )
        if status is None:
            raise OrderNotFound(identifier)
        return status

    @staticmethod
    def list_for_user(user):
        return Order.objects.filter(user=user).prefetch_related("items")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    @staticmethod
    def _get_locked(identifier) -> Order:
        order = Order.objects.select_for_update().filter(order_lookup(identifier)).first()
        if order is None:
            raise OrderNotFound(identifier)
        return order

    @staticmethod
    def _compare_and_set(order, new_status, source, note="", actor=None) -> bool:
        """
        Writes new_status only if the row still holds the status we read.
        Returns False when another writer got there first.
        """
        old_status = order.status
        updated = Order.objects.filter(pk=order.pk, status=old_status).update(
            status=new_status, updated_at=timezone.now()
        )
        if not updated:
            logger.warning(
                "Order %s changed concurrently, dropping %s -> %s",
                order.uuid, old_status, new_status,
                extra={"order_code": order.uuid},
            )
            order.refresh_from_db(fields=["status", "updated_at"])
            return False

        order.status = new_status
        OrderTimeline.objects.create(
            order=order,
            from_status=old_status,
            status=new_status,
            source=source,
            note=note,
            created_by=actor,
        )
        return True

    @staticmethod
    def _send_after_commit(signal, order, **kwargs):
        def dispatch():
            for receiver, response in signal.send_robust(sender=Order, order=order, **kwargs):
                if isinstance(response, Exception):
                    logger.error(
                        "Receiver %r failed for order %s: %s", receiver, order.uuid, response,
                        extra={"order_code": order.uuid},
                    )

        transaction.on_commit(dispatch)

    def transition_status(self, identifier, new_status, actor=None, note="") -> Order:
        """
        Admin status change. Same-status requests are a silent no-op.
        """
        if new_status not in S.values:
            raise OrderValidationError(f"Unknown status '{new_status}'")

        with transaction.atomic():
            order = self._get_locked(identifier)
            old_status = order.status

            if new_status == old_status:
                return order

            if new_status not in ALLOWED_TRANSITIONS.get(old_status, set()):
                raise InvalidStatusTransition(old_status, new_status)

            changed = self._compare_and_set(
                order, new_status,
                source=OrderTimeline.Source.ADMIN,
                note=note or f"Status changed to {new_status}.",
                actor=actor,
            )
            if changed:
                logger.info("Order %s: %s -> %s by admin", order.uuid, old_status, new_status)
                self._send_after_commit(
                    order_status_changed, order, old_status=old_status, new_status=new_status
                )

        return order

    def mark_paid(self, identifier, note="Payment approved by gateway."):
        """
        Gateway approval edge. Returns (order, changed).
        Repeated approvals for an already paid order change nothing.
        """
        with transaction.atomic():
            order = self._get_locked(identifier)
            if order.status not in GATEWAY_PAYABLE:
                logger.info("Order %s already %s, ignoring approval", order.uuid, order.status)
                return order, False

            changed = self._compare_and_set(
                order, S.PAID, source=OrderTimeline.Source.GATEWAY, note=note
            )
            if changed:
                logger.info("Order %s marked paid", order.uuid, extra={"order_code": order.uuid})
                self._send_after_commit(order_paid, order)

        return order, changed

    def mark_failed(self, identifier, reason="Payment declined by gateway."):
        """
        Gateway decline edge. Only a pending order can fail; a paid order is
        never downgraded by a late or duplicate decline.
        """
        with transaction.atomic():
            order = self._get_locked(identifier)
            if order.status not in GATEWAY_FAILABLE:
                if order.status == S.PAID:
                    logger.warning("Decline received for paid order %s, keeping it paid", order.uuid)
                return order, False

            changed = self._compare_and_set(
                order, S.FAILED, source=OrderTimeline.Source.GATEWAY, note=reason
            )
            if changed:
                logger.info("Order %s marked failed", order.uuid, extra={"order_code": order.uuid})

        return order, changed


