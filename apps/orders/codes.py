# apps/orders/codes.py
import logging
import secrets
import string

from django.conf import settings
from django.utils import timezone

from apps.utils.exceptions import OrderCodeGenerationError

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 6


def random_suffix(length=SUFFIX_LENGTH):
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def code_exists(code):
    from .models import Order
    return Order.objects.filter(uuid=code).exists()


class OrderCodeGenerator:
    """
    Builds ORD-YYYYMMDD-XXXXXX codes, probing `exists` until a free one is found.

    The probe only narrows the race; the unique column on Order.uuid is what
    actually guarantees uniqueness.
    """

    def __init__(self, exists=None, max_attempts=None, suffix_factory=None, today=None):
        self.exists = exists or code_exists
        if max_attempts is None:
            max_attempts = settings.ORDER_CODE_MAX_ATTEMPTS
        self.max_attempts = max_attempts
        self.suffix_factory = suffix_factory or random_suffix
        self.today = today or timezone.localdate

    def build(self):
        return f"ORD-{self.today():%Y%m%d}-{self.suffix_factory()}"

    def generate(self):
        for attempt in range(1, self.max_attempts + 1):
            code = self.build()
            if not self.exists(code):
                return code
            logger.warning(
                "Order code collision on %s (attempt %s/%s)", code, attempt, self.max_attempts
            )

        raise OrderCodeGenerationError(
            f"Could not generate a unique order code after {self.max_attempts} attempts"
        )
