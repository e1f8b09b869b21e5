from django.core.exceptions import ImproperlyConfigured
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'Order must include at least one item').
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message, code="business_error"):
        self.message = message
        self.code = code
        super().__init__(message)

    def as_payload(self):
        return {"error": self.message, "code": self.code}


class OrderValidationError(BusinessLogicException):
    def __init__(self, message):
        super().__init__(message, code="validation_error")


class ProductNotFound(BusinessLogicException):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, missing_ids):
        self.missing_ids = [str(pk) for pk in missing_ids]
        super().__init__(
            f"Products not found: {', '.join(self.missing_ids)}",
            code="product_not_found",
        )

    def as_payload(self):
        payload = super().as_payload()
        payload["missing_ids"] = self.missing_ids
        return payload


class OrderNotFound(BusinessLogicException):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, identifier):
        self.identifier = str(identifier)
        super().__init__("Order not found", code="order_not_found")


class InvalidStatusTransition(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot change order status from '{current}' to '{target}'",
            code="invalid_transition",
        )


class OrderNotPayable(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current):
        super().__init__(
            f"Order is not in a payable state: {current}",
            code="order_not_payable",
        )


class GatewayRequestFailed(BusinessLogicException):
    """
    The payment provider could not issue a payment link.
    The message is always generic; provider details go to the log only.
    """
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message="Payment gateway request failed"):
        super().__init__(message, code="gateway_error")


class ConfigurationError(ImproperlyConfigured):
    """Missing secret, unknown delivery zone and similar deployment mistakes."""


class OrderCodeGenerationError(RuntimeError):
    pass


def custom_exception_handler(exc, context):
    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if isinstance(exc, BusinessLogicException):
        return Response(exc.as_payload(), status=exc.status_code)

    if isinstance(exc, (ConfigurationError, OrderCodeGenerationError)):
        logger.critical(f"Fatal configuration error: {exc}", exc_info=True)
        return Response(
            {"error": "Internal Server Error", "code": "server_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    # If response is None, it's an unhandled server error (500)
    if response is None:
        logger.error(f"Unhandled Exception: {exc}", exc_info=True)
        return Response(
            {"error": "Internal Server Error", "code": "server_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response
