"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as DTOValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.customers.exceptions import CustomerNotFound
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.cache import order_cache
from modules.orders.constants import TransitionSource
from modules.orders.dtos import (
    CreateOrderDTO,
    NoteDTO,
    PrintDTO,
    TransitionDTO,
    UpdateOrderDTO,
)
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelSerializer,
    CreateOrderSerializer,
    NoteSerializer,
    OrderListSerializer,
    OrderLogSerializer,
    OrderSerializer,
    PrintSerializer,
    TransitionSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService


def request_user(request: Request) -> str:
    """Display name recorded in order logs for the acting user."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return ""
    return user.get_username() if hasattr(user, "get_username") else str(user)


def not_found_response(message: str = "Order not found.") -> Response:
    return Response({"detail": message}, status=status.HTTP_404_NOT_FOUND)


def invalid_status_response(exc: InvalidOrderStatus) -> Response:
    return Response(
        {"detail": str(exc), "hint": exc.hint},
        status=status.HTTP_400_BAD_REQUEST,
    )


def dto_error_response(exc: DTOValidationError) -> Response:
    return Response(
        {"detail": [error["msg"] for error in exc.errors()]},
        status=status.HTTP_400_BAD_REQUEST,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with an injected repository (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["delivery_date", "created_at", "total_price", "status"]
    ordering = ["delivery_date", "-created_at"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        ``submit: true`` places the order in the queue, otherwise a draft
        is stored.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO(**create_serializer.validated_data)
            order = self._service.create_order(dto, user=request_user(request))
        except DTOValidationError as exc:
            return dto_error_response(exc)
        except CustomerNotFound:
            return not_found_response("Customer not found.")

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, delivery date range, slot, search) is handled by
        ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/ (served from the order cache when warm)."""
        try:
            payload = order_cache.get_or_build(
                pk, lambda: dict(OrderSerializer(self._service.get_order(pk)).data)
            )
        except OrderNotFound:
            return not_found_response()
        return Response(payload)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Updates any subset of fields.  A ``status`` in the payload goes
        through the same transition policy as ``/transition/``.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateOrderDTO(**serializer.validated_data)
            order = self._service.update_order(pk, dto, user=request_user(request))
        except DTOValidationError as exc:
            return dto_error_response(exc)
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)

        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (drafts only)."""
        try:
            self._service.delete_draft(pk)
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def transition(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/transition/

        Generic status change.  Locked statuses reject anything outside
        their allow-list; the 400 response carries the page hint.
        """
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = TransitionDTO(**serializer.validated_data)
            order = self._service.apply_transition(
                pk,
                dto.status,
                source=TransitionSource.GENERIC,
                user=request_user(request),
                note=dto.note,
            )
        except DTOValidationError as exc:
            return dto_error_response(exc)
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                pk,
                user=request_user(request),
                note=serializer.validated_data.get("note", ""),
            )
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def archive(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/archive/"""
        try:
            order = self._service.archive_order(pk, user=request_user(request))
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def restore(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/restore/ (archived -> finished)."""
        try:
            order = self._service.restore_order(pk, user=request_user(request))
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"], url_path="allowed-transitions")
    def allowed_transitions(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/allowed-transitions/

        Statuses the generic status control may offer for this order.
        """
        try:
            payload = self._service.allowed_transitions(pk)
        except OrderNotFound:
            return not_found_response()
        return Response(payload)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="print")
    def print_document(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/print/"""
        serializer = PrintSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = PrintDTO(**serializer.validated_data)
        try:
            order = self._service.record_print(pk, dto.type, user=request_user(request))
        except OrderNotFound:
            return not_found_response()

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def notes(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/notes/"""
        serializer = NoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = NoteDTO(**serializer.validated_data)
            entry = self._service.add_note(pk, dto.note, user=request_user(request))
        except DTOValidationError as exc:
            return dto_error_response(exc)
        except OrderNotFound:
            return not_found_response()

        return Response(OrderLogSerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"])
    def logs(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/logs/"""
        try:
            entries = self._service.get_logs(pk)
        except OrderNotFound:
            return not_found_response()
        return Response(OrderLogSerializer(entries, many=True).data)
