"""Wishlist URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.wishlist.views import WishlistViewSet

router = DefaultRouter(trailing_slash=True)
router.register("wishlist", WishlistViewSet, basename="wishlist")

urlpatterns = router.urls
