"""Delivery API views.

Exposes the ``DeliveryService`` and the trip planner via HTTP.  Domain
exceptions become 400/404 responses; order payloads use the order
serializers.
"""

from __future__ import annotations

from pydantic import ValidationError as DTOValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.delivery.dtos import (
    AssignDriverDTO,
    CreateTripDTO,
    DeliveryListQuery,
    FeedbackDTO,
)
from modules.delivery.exceptions import InvalidTrip, TripNotFound
from modules.delivery.models import DeliveryTrip
from modules.delivery.repositories.django_repository import TripDjangoRepository
from modules.delivery.serializers import (
    AssignDriverSerializer,
    ConfirmDeliverySerializer,
    CreateTripSerializer,
    DeliveryListQuerySerializer,
    FeedbackSerializer,
    TripListQuerySerializer,
    TripOrderSerializer,
    TripSerializer,
    TripStatusSerializer,
    UnassignedQuerySerializer,
)
from modules.delivery.services import DeliveryService, TripService
from modules.orders.exceptions import (
    DriverNotAssigned,
    InvalidDriverAssignment,
    InvalidOrderStatus,
    OrderNotFound,
)
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer, OrderSerializer
from modules.orders.services import OrderService
from modules.orders.views import (
    dto_error_response,
    invalid_status_response,
    not_found_response,
    request_user,
)


class DeliveryViewSet(GenericViewSet):
    """Delivery board and driver/delivery actions."""

    queryset = Order.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        repository = OrderDjangoRepository()
        self._service = DeliveryService(
            order_repository=repository,
            order_service=OrderService(order_repository=repository),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/deliveries/?date=today&status=all&time_status=late&slot=slot1"""
        query = DeliveryListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        orders = self._service.list_deliveries(
            DeliveryListQuery(
                date_filter=data["date"],
                status_filter=data["status"],
                time_status=data["time_status"],
                slot=data["slot"] or None,
            )
        )
        return Response(OrderListSerializer(orders, many=True).data)

    def _run(self, operation, *args, **kwargs) -> Response:
        try:
            order = operation(*args, **kwargs)
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)
        except (DriverNotAssigned, InvalidDriverAssignment) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/assign/"""
        serializer = AssignDriverSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = AssignDriverDTO(**serializer.validated_data)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        return self._run(
            self._service.assign_driver, pk, dto, user=request_user(request)
        )

    @action(detail=True, methods=["post"], url_path="confirm-assignment")
    def confirm_assignment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/confirm-assignment/"""
        return self._run(
            self._service.confirm_assignment, pk, user=request_user(request)
        )

    @action(detail=True, methods=["post"])
    def unassign(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/unassign/"""
        return self._run(self._service.unassign_driver, pk, user=request_user(request))

    @action(detail=True, methods=["post"])
    def start(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/start/"""
        return self._run(self._service.start_delivery, pk, user=request_user(request))

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/confirm/"""
        serializer = ConfirmDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(
            self._service.confirm_delivery,
            pk,
            user=request_user(request),
            note=serializer.validated_data["note"],
        )

    @action(detail=True, methods=["post"], url_path="request-feedback")
    def request_feedback(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/request-feedback/"""
        return self._run(
            self._service.request_feedback, pk, user=request_user(request)
        )

    @action(detail=True, methods=["post"])
    def feedback(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/feedback/"""
        serializer = FeedbackSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = FeedbackDTO(**serializer.validated_data)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        return self._run(
            self._service.record_feedback, pk, dto.feedback, user=request_user(request)
        )


class TripViewSet(GenericViewSet):
    """Delivery trip planner.

    Trips are listed per date; ``unassigned`` feeds the planner with the
    orders of that date not yet on a trip.
    """

    queryset = DeliveryTrip.objects.none()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = TripService(
            trip_repository=TripDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )

    def _run(self, operation, *args, **kwargs) -> Response:
        try:
            trip = operation(*args, **kwargs)
        except TripNotFound:
            return not_found_response("Trip not found.")
        except OrderNotFound as exc:
            return not_found_response(str(exc))
        except InvalidTrip as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(TripSerializer(trip).data)

    def list(self, request: Request) -> Response:
        """GET /api/v1/delivery-trips/?date=2026-10-20&driver_type=driver-1"""
        query = TripListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        trips = self._service.list_trips(
            trip_date=query.validated_data["date"],
            driver_type=query.validated_data["driver_type"],
        )
        return Response(TripSerializer(trips, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        return self._run(self._service.get_trip, pk)

    def create(self, request: Request) -> Response:
        serializer = CreateTripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateTripDTO(**serializer.validated_data)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        trip = self._service.create_trip(dto)
        return Response(TripSerializer(trip).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        try:
            self._service.delete_trip(pk)
        except TripNotFound:
            return not_found_response("Trip not found.")
        except InvalidTrip as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def unassigned(self, request: Request) -> Response:
        """GET /api/v1/delivery-trips/unassigned/?date=2026-10-20"""
        query = UnassignedQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        orders = self._service.unassigned_orders(query.validated_data["date"])
        return Response(OrderListSerializer(orders, many=True).data)

    @action(detail=True, methods=["post"], url_path="orders")
    def add_order(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/delivery-trips/{pk}/orders/"""
        serializer = TripOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(
            self._service.add_order,
            pk,
            serializer.validated_data["order_id"],
            user=request_user(request),
        )

    @action(detail=True, methods=["delete"], url_path=r"orders/(?P<order_id>[^/.]+)")
    def remove_order(
        self, request: Request, pk: str | None = None, order_id: str | None = None
    ) -> Response:
        """DELETE /api/v1/delivery-trips/{pk}/orders/{order_id}/"""
        return self._run(
            self._service.remove_order, pk, order_id, user=request_user(request)
        )

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/delivery-trips/{pk}/status/"""
        serializer = TripStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(self._service.set_status, pk, serializer.validated_data["status"])
