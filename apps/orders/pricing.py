# apps/orders/pricing.py
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from apps.catalog.services import get_products_by_ids
from apps.site_settings.services import get_delivery_settings
from apps.utils.exceptions import (
    ConfigurationError,
    OrderValidationError,
    ProductNotFound,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce catalog / settings values to a 2dp Decimal without float drift."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """110.00 -> 11000, rounded half-up at the cent."""
    return int((to_money(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class LineItem:
    product_id: str
    name: dict
    image: str
    external_code: Optional[str]
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PricingSnapshot:
    """
    Turns client (product_id, quantity) pairs into priced line items.

    Prices always come from the catalog. Anything price-like the client sends
    never reaches this class.
    """

    def __init__(self, catalog_reader=None):
        self.catalog_reader = catalog_reader or get_products_by_ids

    def resolve(self, items) -> list:
        if not items:
            raise OrderValidationError("Order must include at least one item")

        wanted = [str(item["product_id"]) for item in items]
        unique_ids = list(dict.fromkeys(wanted))
        products = {str(p["id"]): p for p in self.catalog_reader(unique_ids)}

        missing = [pk for pk in unique_ids if pk not in products]
        if missing:
            logger.info("Checkout rejected, unknown products: %s", missing)
            raise ProductNotFound(missing)

        lines = []
        for product_id, item in zip(wanted, items):
            quantity = int(item["quantity"])
            if quantity < 1:
                raise OrderValidationError("Quantity must be at least 1")

            product = products[product_id]
            unit_price = to_money(product["price"])
            if unit_price < 0:
                raise OrderValidationError(f"Product {product_id} has an invalid price")

            lines.append(
                LineItem(
                    product_id=product_id,
                    name=dict(product.get("name") or {}),
                    image=product.get("image") or "",
                    external_code=product.get("external_code"),
                    quantity=quantity,
                    unit_price=unit_price,
                    line_total=to_money(unit_price * quantity),
                )
            )
        return lines

    @staticmethod
    def subtotal(lines) -> Decimal:
        return to_money(sum((line.line_total for line in lines), Decimal("0")))


class DeliveryPricingPolicy:
    """
    Zone fee with a free-shipping threshold, read from site settings on every quote.
    """

    def __init__(self, settings_reader=None):
        self.settings_reader = settings_reader or get_delivery_settings

    def quote(self, zone: str, subtotal: Decimal) -> Decimal:
        rules = self.settings_reader()
        rule = rules.get(zone)
        if rule is None:
            raise ConfigurationError(f"No delivery rule configured for zone '{zone}'")

        free_over = rule.get("free_over")
        if free_over is not None and to_money(subtotal) >= to_money(free_over):
            return Decimal("0.00")
        return to_money(rule["fee"])
