# apps/utils/tests.py
import json
import logging

from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework.exceptions import ValidationError

from .exceptions import GatewayRequestFailed
from .logging import JSONFormatter
from .resilience import CircuitBreaker
from .validators import validate_phone, validate_personal_id, validate_minor_units


class ValidatorTests(TestCase):
    def test_phone_validator(self):
        self.assertEqual(validate_phone("577955582"), "577955582")
        with self.assertRaises(ValidationError):
            validate_phone("12345")

    def test_personal_id_validator(self):
        self.assertEqual(validate_personal_id("01017012345"), "01017012345")
        with self.assertRaises(ValidationError):
            validate_personal_id("0101701234")

    def test_minor_units_validator(self):
        self.assertEqual(validate_minor_units("11000"), "11000")
        for bad in ("110.00", "-5", "abc", ""):
            with self.assertRaises(ValidationError):
                validate_minor_units(bad)


class CircuitBreakerTests(TestCase):
    def setUp(self):
        cache.clear()
        self.calls = 0

    def test_opens_after_threshold_and_fails_fast(self):
        breaker = CircuitBreaker(
            "flaky", GatewayRequestFailed, failure_threshold=2, failure_types=(ConnectionError,)
        )

        @breaker
        def flaky():
            self.calls += 1
            raise ConnectionError("down")

        for _ in range(2):
            with self.assertRaises(ConnectionError):
                flaky()

        with self.assertRaises(GatewayRequestFailed):
            flaky()
        self.assertEqual(self.calls, 2)

        breaker.reset()
        self.assertFalse(breaker.is_open())

    def test_unlisted_exceptions_do_not_count(self):
        breaker = CircuitBreaker("strict", GatewayRequestFailed, failure_threshold=1,
                                 failure_types=(ConnectionError,))

        @breaker
        def broken():
            raise KeyError("bug")

        with self.assertRaises(KeyError):
            broken()
        self.assertFalse(breaker.is_open())


class JSONFormatterTests(TestCase):
    def test_scrubs_sensitive_keys_and_keeps_order_context(self):
        record = logging.LogRecord(
            "apps.payments", logging.INFO, __file__, 1,
            {"signature": "abc", "amount": 11000}, None, None,
        )
        record.order_id = "42"
        payload = json.loads(JSONFormatter().format(record))

        self.assertIn("REDACTED", payload["msg"])
        self.assertNotIn("abc", payload["msg"])
        self.assertEqual(payload["order_id"], "42")


class HealthCheckTests(TestCase):
    def test_health_reports_components(self):
        resp = self.client.get(reverse("health-check"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["components"], {"db": "ok", "cache": "ok"})
