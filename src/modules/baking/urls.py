"""Baking URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.baking.views import BakingTaskViewSet, InventoryViewSet, ProductionLogViewSet

router = DefaultRouter(trailing_slash=True)
router.register("baking/tasks", BakingTaskViewSet, basename="baking-task")
router.register("baking/production", ProductionLogViewSet, basename="baking-production")
router.register("baking/inventory", InventoryViewSet, basename="baking-inventory")

urlpatterns = router.urls
