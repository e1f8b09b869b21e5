import os

os.environ.setdefault("DEBUG", "True")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DB_SSL_REQUIRE", "False")

from .settings import *  # noqa: E402,F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
TEST_EMAIL_RECIPIENT = None

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

API_URL = "https://api.shop.test/api/v1/"
FRONTEND_URL = "https://shop.test/"

FLITT_MERCHANT_ID = "1549901"
FLITT_SECRET_KEY = "test"
FLITT_CHECKOUT_URL = "https://pay.flitt.test/api/checkout/url"
# Callback tests post unsigned payloads unless they opt in
FLITT_VERIFY_CALLBACK_SIGNATURE = False

LOGGING["loggers"]["apps"]["level"] = "WARNING"  # noqa: F405
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]["checkout"] = "1000/min"  # noqa: F405
