from django.conf import settings
from django.core.checks import Error, Warning, register


@register()
def check_flitt_settings(app_configs, **kwargs):
    errors = []
    if not getattr(settings, "FLITT_SECRET_KEY", None):
        errors.append(Error(
            "FLITT_SECRET_KEY is not configured.",
            hint="Set FLITT_SECRET_KEY in the environment; payment links cannot be signed without it.",
            id="payments.E001",
        ))
    if not getattr(settings, "FLITT_MERCHANT_ID", None):
        errors.append(Warning(
            "FLITT_MERCHANT_ID is not configured.",
            id="payments.W001",
        ))
    return errors
