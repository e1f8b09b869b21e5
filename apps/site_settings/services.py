# apps/site_settings/services.py
import logging

from .models import SiteSettings

logger = logging.getLogger(__name__)

MAIN_KEY = "main"


def get_settings() -> SiteSettings:
    """
    Returns the settings row, creating it with model defaults on first access.
    """
    obj, created = SiteSettings.objects.get_or_create(key=MAIN_KEY)
    if created:
        logger.info("Created default site settings row")
    return obj


def get_delivery_settings() -> dict:
    """
    {"tbilisi": {"fee", "free_over"}, "region": {"fee", "free_over"}}
    """
    return get_settings().delivery_rules()


def update_settings(**fields) -> SiteSettings:
    obj = get_settings()
    changed = []
    for name, value in fields.items():
        if value is None:
            continue
        setattr(obj, name, value)
        changed.append(name)

    if changed:
        obj.save(update_fields=changed + ["updated_at"])
        logger.info("Site settings updated: %s", ", ".join(changed))
    return obj
