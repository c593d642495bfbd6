"""URL routing for payments."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import CheckoutView, DemoPaymentView, VerifyPaymentView

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="payment-checkout"),
    path("verify/", VerifyPaymentView.as_view(), name="payment-verify"),
    path("demo/", DemoPaymentView.as_view(), name="payment-demo"),
]
