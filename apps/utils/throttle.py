from rest_framework.throttling import UserRateThrottle


class CheckoutRateThrottle(UserRateThrottle):
    """
    Order creation and payment-link requests.
    Keyed by user when authenticated, by client IP otherwise.
    Scope: 'checkout' (configured in settings)
    """
    scope = 'checkout'
