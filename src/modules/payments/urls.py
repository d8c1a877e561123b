"""Payments URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import PaymentWebhookView

urlpatterns = [
    path("payments/webhook/", PaymentWebhookView.as_view(), name="payment_webhook"),
]
