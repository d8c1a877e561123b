"""Notifications URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.notifications.views import SendEmailView

urlpatterns = [
    path("notifications/email/", SendEmailView.as_view(), name="send_email"),
]
