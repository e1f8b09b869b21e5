# apps/payments/gateway.py
"""
Flitt hosted-checkout client.

Flitt signs requests with sha1 over "secret|v1|v2|..." where the values are
taken in parameter-name order. That algorithm is fixed by the provider and is
kept in this module only.
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass, field

import requests
from django.conf import settings

from apps.orders.pricing import to_minor_units
from apps.utils.exceptions import ConfigurationError, GatewayRequestFailed
from apps.utils.resilience import CircuitBreaker

logger = logging.getLogger(__name__)

# Keys Flitt adds to callbacks that are not part of the signed string
UNSIGNED_KEYS = {"signature", "response_signature_string"}

flitt_breaker = CircuitBreaker(
    "flitt",
    GatewayRequestFailed,
    failure_threshold=5,
    recovery_timeout=60,
    failure_types=(requests.RequestException,),
)


@dataclass(frozen=True)
class GatewayConfig:
    merchant_id: str
    secret_key: str
    checkout_url: str
    api_url: str
    currency: str = "GEL"
    timeout: float = 10.0
    verify_callback_signature: bool = True

    @classmethod
    def from_settings(cls):
        return cls(
            merchant_id=settings.FLITT_MERCHANT_ID,
            secret_key=settings.FLITT_SECRET_KEY,
            checkout_url=settings.FLITT_CHECKOUT_URL,
            api_url=settings.API_URL,
            currency=settings.FLITT_CURRENCY,
            timeout=settings.FLITT_TIMEOUT,
            verify_callback_signature=getattr(settings, "FLITT_VERIFY_CALLBACK_SIGNATURE", True),
        )


@dataclass(frozen=True)
class PaymentLink:
    redirect_url: str
    response: dict = field(default_factory=dict)


def sign(params: dict, secret: str) -> str:
    values = [
        str(params[key])
        for key in sorted(params)
        if key not in UNSIGNED_KEYS and params[key] is not None and params[key] != ""
    ]
    raw = "|".join([secret] + values)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def verify_signature(payload: dict, secret: str) -> bool:
    received = payload.get("signature")
    if not received or not secret:
        return False
    return hmac.compare_digest(sign(payload, secret), str(received))


class FlittClient:

    def __init__(self, config: GatewayConfig):
        self.config = config

    def _require_secret(self):
        if not self.config.secret_key:
            raise ConfigurationError("FLITT_SECRET_KEY is not configured")
        return self.config.secret_key

    def build_params(self, order, locale="ka") -> dict:
        api_url = self.config.api_url
        return {
            "amount": to_minor_units(order.total),
            "currency": self.config.currency,
            "lang": locale,
            "merchant_id": self.config.merchant_id,
            "order_desc": f"Order payment {order.uuid}",
            "order_id": str(order.pk),
            "response_url": f"{api_url}orders/return/?locale={locale}",
            "server_callback_url": f"{api_url}orders/callback/",
        }

    @flitt_breaker
    def _post(self, payload: dict) -> dict:
        response = requests.post(
            self.config.checkout_url,
            json=payload,
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        return response.json()

    def create_payment_link(self, order, locale="ka") -> PaymentLink:
        """
        Asks Flitt for a hosted checkout URL. Never touches the order itself.
        """
        secret = self._require_secret()
        params = self.build_params(order, locale)
        payload = {"request": {**params, "signature": sign(params, secret)}}

        try:
            data = self._post(payload)
        except (requests.RequestException, ValueError) as e:
            logger.error(
                "Flitt checkout request failed for order %s: %s", order.uuid, e,
                extra={"order_code": order.uuid},
            )
            raise GatewayRequestFailed() from e

        body = data.get("response") if isinstance(data, dict) else None
        checkout_url = body.get("checkout_url") if isinstance(body, dict) else None
        if not checkout_url:
            logger.error(
                "Flitt returned no checkout_url for order %s: status=%s error=%s",
                order.uuid,
                (body or {}).get("response_status"),
                (body or {}).get("error_message"),
                extra={"order_code": order.uuid},
            )
            raise GatewayRequestFailed()

        return PaymentLink(redirect_url=checkout_url, response=data)
