"""Kitchen API views.

Exposes the ``KitchenService`` via HTTP.  Order payloads are rendered with
the order serializers; domain exceptions become 400/404 responses.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.kitchen.serializers import (
    ApprovePhotoSerializer,
    BoardQuerySerializer,
    KitchenStatusSerializer,
    RevisionRequestSerializer,
)
from modules.kitchen.services import KitchenService
from modules.orders.exceptions import (
    InvalidKitchenStatus,
    InvalidOrderStatus,
    OrderNotFound,
    RevisionNotesRequired,
)
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer, OrderSerializer
from modules.orders.services import OrderService
from modules.orders.views import (
    invalid_status_response,
    not_found_response,
    request_user,
)


def bad_request(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class KitchenViewSet(GenericViewSet):
    """Kitchen leader board and production actions."""

    queryset = Order.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        repository = OrderDjangoRepository()
        self._service = KitchenService(
            order_repository=repository,
            order_service=OrderService(order_repository=repository),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/kitchen/orders/

        Returns the production queue and one column per kitchen status.
        """
        query = BoardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        board = self._service.board(time_filter=query.validated_data["time_filter"])
        return Response(
            {
                column: OrderListSerializer(orders, many=True).data
                for column, orders in board.items()
            }
        )

    def _run(self, operation, *args, **kwargs) -> Response:
        try:
            order = operation(*args, **kwargs)
        except OrderNotFound:
            return not_found_response()
        except InvalidOrderStatus as exc:
            return invalid_status_response(exc)
        except (InvalidKitchenStatus, RevisionNotesRequired) as exc:
            return bad_request(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def start(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/kitchen/orders/{pk}/start/"""
        return self._run(self._service.start_production, pk, user=request_user(request))

    @action(detail=True, methods=["post"])
    def advance(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/kitchen/orders/{pk}/advance/"""
        return self._run(self._service.advance, pk, user=request_user(request))

    @action(detail=True, methods=["post"], url_path="kitchen-status")
    def kitchen_status(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/kitchen/orders/{pk}/kitchen-status/"""
        serializer = KitchenStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(
            self._service.set_kitchen_status,
            pk,
            serializer.validated_data["kitchen_status"],
            user=request_user(request),
        )

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/kitchen/orders/{pk}/approve/"""
        serializer = ApprovePhotoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(
            self._service.approve_photo,
            pk,
            photos=serializer.validated_data["photos"],
            user=request_user(request),
        )

    @action(detail=True, methods=["post"])
    def revision(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/kitchen/orders/{pk}/revision/"""
        serializer = RevisionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(
            self._service.request_revision,
            pk,
            serializer.validated_data["notes"],
            photos=serializer.validated_data["photos"],
            user=request_user(request),
        )
