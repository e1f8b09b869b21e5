from django.urls import path

from .views import CreatePaymentView, PaymentCallbackView, PaymentReturnView

urlpatterns = [
    path("payment/", CreatePaymentView.as_view(), name="payment-create"),
    path("callback/", PaymentCallbackView.as_view(), name="payment-callback"),
    path("return/", PaymentReturnView.as_view(), name="payment-return"),
]
