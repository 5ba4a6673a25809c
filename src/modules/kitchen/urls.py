"""Kitchen URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.kitchen.views import KitchenViewSet

router = DefaultRouter(trailing_slash=True)
router.register("kitchen/orders", KitchenViewSet, basename="kitchen-order")

urlpatterns = router.urls
