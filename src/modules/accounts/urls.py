"""Accounts URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.accounts.views import AddressViewSet, ProfileView

router = DefaultRouter(trailing_slash=True)
router.register("addresses", AddressViewSet, basename="address")

urlpatterns = [
    path("me/profile/", ProfileView.as_view(), name="profile"),
    *router.urls,
]
