"""Delivery URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.delivery.views import DeliveryViewSet, TripViewSet

router = DefaultRouter(trailing_slash=True)
router.register("deliveries", DeliveryViewSet, basename="delivery")
router.register("delivery-trips", TripViewSet, basename="delivery-trip")

urlpatterns = router.urls
