"""Baking API views.

Baker page endpoints: baking tasks, the production log and the cake
inventory.  All writes go through ``BakingService``.
"""

from __future__ import annotations

from pydantic import ValidationError as DTOValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.baking.dtos import ManualTaskDTO, ProductionEntryDTO
from modules.baking.exceptions import (
    BakingTaskNotFound,
    InvalidBakingTask,
    InventoryItemNotFound,
)
from modules.baking.models import BakingTask, CakeInventoryItem, ProductionLogEntry
from modules.baking.repositories import BakingDjangoRepository
from modules.baking.serializers import (
    AcknowledgeTaskSerializer,
    BakingTaskSerializer,
    CakeInventoryItemSerializer,
    CancelTaskSerializer,
    InventoryUpdateSerializer,
    ManualTaskInputSerializer,
    ProductionEntryInputSerializer,
    ProductionLogEntrySerializer,
    TaskListQuerySerializer,
)
from modules.baking.services import BakingService
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.views import dto_error_response, not_found_response


def baking_service() -> BakingService:
    return BakingService(
        baking_repository=BakingDjangoRepository(),
        order_repository=OrderDjangoRepository(),
    )


def bad_request(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class BakingTaskViewSet(GenericViewSet):
    """Baking tasks: aggregated from orders or created by the baker."""

    queryset = BakingTask.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = baking_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/baking/tasks/?status=pending"""
        query = TaskListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        tasks = self._service.list_tasks(status=query.validated_data["status"])
        return Response(BakingTaskSerializer(tasks, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/baking/tasks/{pk}/"""
        try:
            task = self._service.get_task(pk)
        except BakingTaskNotFound:
            return not_found_response("Baking task not found.")
        return Response(BakingTaskSerializer(task).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/baking/tasks/ -- manual task."""
        serializer = ManualTaskInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = ManualTaskDTO(**serializer.validated_data)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        task = self._service.create_manual_task(dto)
        return Response(BakingTaskSerializer(task).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/baking/tasks/{pk}/ -- manual tasks only."""
        try:
            entry = self._service.delete_manual_task(pk)
        except BakingTaskNotFound:
            return not_found_response("Baking task not found.")
        except InvalidBakingTask as exc:
            return bad_request(exc)
        return Response(ProductionLogEntrySerializer(entry).data)

    @action(detail=False, methods=["post"])
    def sync(self, request: Request) -> Response:
        """POST /api/v1/baking/tasks/sync/

        Runs the order aggregation immediately instead of waiting for the
        scheduled run.
        """
        result = self._service.sync_tasks_from_orders()
        return Response(result.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/baking/tasks/{pk}/cancel/"""
        serializer = CancelTaskSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            task = self._service.cancel_manual_task(
                pk, reason=serializer.validated_data["reason"]
            )
        except BakingTaskNotFound:
            return not_found_response("Baking task not found.")
        except InvalidBakingTask as exc:
            return bad_request(exc)
        return Response(BakingTaskSerializer(task).data)

    @action(detail=True, methods=["post"])
    def acknowledge(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/baking/tasks/{pk}/acknowledge/"""
        serializer = AcknowledgeTaskSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            entry = self._service.acknowledge_cancelled_task(
                pk, notes=serializer.validated_data["notes"]
            )
        except BakingTaskNotFound:
            return not_found_response("Baking task not found.")
        except InvalidBakingTask as exc:
            return bad_request(exc)
        return Response(ProductionLogEntrySerializer(entry).data)


class ProductionLogViewSet(GenericViewSet):
    """Production log; posting an entry bakes cakes into the inventory."""

    queryset = ProductionLogEntry.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = baking_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/baking/production/"""
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(self._service.list_production_log(), request)
        serializer = ProductionLogEntrySerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/baking/production/"""
        serializer = ProductionEntryInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = ProductionEntryDTO(**serializer.validated_data)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        try:
            entry = self._service.record_production(dto)
        except BakingTaskNotFound:
            return not_found_response("Baking task not found.")
        except InvalidBakingTask as exc:
            return bad_request(exc)
        return Response(
            ProductionLogEntrySerializer(entry).data, status=status.HTTP_201_CREATED
        )


class InventoryViewSet(GenericViewSet):
    """Baked cake bases on hand."""

    queryset = CakeInventoryItem.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = baking_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/baking/inventory/"""
        items = self._service.list_inventory()
        return Response(CakeInventoryItemSerializer(items, many=True).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/baking/inventory/{pk}/ -- stock take."""
        serializer = InventoryUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            item = self._service.update_inventory(
                pk, serializer.validated_data["quantity"]
            )
        except InventoryItemNotFound:
            return not_found_response("Inventory item not found.")
        return Response(CakeInventoryItemSerializer(item).data)
