# apps/notifications/messages.py
"""
Localized copy for order emails. Unknown locales fall back to Georgian.
"""
from string import Template

SUBJECTS = {
    "order_paid": {
        "ka": "გადახდა წარმატებულია",
        "en": "Payment successful",
    },
    "order_status_changed": {
        "ka": "შეკვეთის სტატუსი განახლდა",
        "en": "Order status updated",
    },
}

BODIES = {
    "order_paid": {
        "ka": Template(
            "თქვენი შეკვეთა გადახდილია წარმატებით.\n\n"
            "შეკვეთის კოდი: ${code}\n"
            "ქვეჯამი: ${subtotal} ₾\n"
            "მიწოდების ფასი: ${delivery_price} ₾\n"
            "ჯამი: ${total} ₾\n\n"
            "${status_url}"
        ),
        "en": Template(
            "Your order has been paid successfully.\n\n"
            "Order code: ${code}\n"
            "Subtotal: ${subtotal} GEL\n"
            "Delivery price: ${delivery_price} GEL\n"
            "Total: ${total} GEL\n\n"
            "${status_url}"
        ),
    },
    "order_status_changed": {
        "ka": Template(
            "შეკვეთის სტატუსი განახლდა: ${status_label}\n\n"
            "შეკვეთის კოდი: ${code}\n\n"
            "${status_url}"
        ),
        "en": Template(
            "Your order status changed: ${status_label}\n\n"
            "Order code: ${code}\n\n"
            "${status_url}"
        ),
    },
}

STATUS_LABELS = {
    "ka": {
        "pending": "მოლოდინში",
        "paid": "გადახდილია",
        "failed": "წარუმატებელია",
        "shipped": "თქვენი შეკვეთა გამოგზავნილია",
        "delivered": "თქვენი შეკვეთა მიწოდებულია",
        "cancelled": "თქვენი შეკვეთა გაუქმებულია",
    },
    "en": {
        "pending": "Pending",
        "paid": "Paid",
        "failed": "Failed",
        "shipped": "Your order has been shipped",
        "delivered": "Your order has been delivered",
        "cancelled": "Your order has been cancelled",
    },
}


def _locale(locale):
    return locale if locale in ("ka", "en") else "ka"


def status_label(locale, status):
    return STATUS_LABELS[_locale(locale)].get(status, str(status))


def render(kind, locale, context):
    """
    Returns (subject, body) for an email kind in the given locale.
    """
    locale = _locale(locale)
    subject = SUBJECTS[kind][locale]
    body = BODIES[kind][locale].safe_substitute(**context)
    return subject, body
