"""Customer API views.

Exposes the ``CustomerService`` via HTTP using DRF ViewSets.  Domain
exceptions are caught and translated into HTTP status codes.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as DTOValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.customers.dtos import AddressDTO, CreateCustomerDTO, UpdateCustomerDTO
from modules.customers.exceptions import (
    AddressLimitReached,
    AddressNotFound,
    CustomerAlreadyExists,
    CustomerNotFound,
)
from modules.customers.filters import CustomerFilter
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.serializers import (
    AddressSerializer,
    CreateCustomerSerializer,
    CustomerSerializer,
    UpdateCustomerSerializer,
)
from modules.customers.services import CustomerService
from modules.orders.filters import OrderFilter
from modules.orders.serializers import OrderListSerializer
from modules.orders.views import dto_error_response


def _detail(message: str, code: int) -> Response:
    return Response({"detail": message}, status=code)


def _not_found(message: str = "Customer not found.") -> Response:
    return _detail(message, status.HTTP_404_NOT_FOUND)


class CustomerViewSet(GenericViewSet):
    """Customer address book.

    Uses ``CustomerService`` with ``CustomerDjangoRepository`` (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Customer.objects.none()
    filterset_class = CustomerFilter
    ordering_fields = ["name", "created_at"]
    ordering = ["name", "-created_at"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CustomerService(repository=CustomerDjangoRepository())

    def get_queryset(self):
        return self._service.list_customers()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/customers/ (``search`` matches name, number or email)."""
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(CustomerSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            customer = self._service.get_customer(pk)
        except CustomerNotFound:
            return _not_found()
        return Response(CustomerSerializer(customer).data)

    @action(detail=False, methods=["get"])
    def lookup(self, request: Request) -> Response:
        """GET /api/v1/customers/lookup/?whatsapp=0812...

        Recognises a returning customer from the order form.
        """
        number = request.query_params.get("whatsapp", "")
        if not number.strip():
            return _detail("whatsapp query parameter is required.", status.HTTP_400_BAD_REQUEST)
        try:
            customer = self._service.find_by_whatsapp(number)
        except CustomerNotFound:
            return _not_found()
        return Response(CustomerSerializer(customer).data)

    @action(detail=True, methods=["get"])
    def orders(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/customers/{pk}/orders/ (accepts the order list filters)."""
        try:
            queryset = self._service.customer_orders(pk)
        except CustomerNotFound:
            return _not_found()
        queryset = OrderFilter(request.query_params, queryset=queryset).qs
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(OrderListSerializer(page, many=True).data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        serializer = CreateCustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateCustomerDTO(**serializer.validated_data)
            customer = self._service.create_customer(dto)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        except CustomerAlreadyExists as exc:
            return _detail(str(exc), status.HTTP_409_CONFLICT)

        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        serializer = UpdateCustomerSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateCustomerDTO(**serializer.validated_data)
            customer = self._service.update_customer(pk, dto)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        except CustomerNotFound:
            return _not_found()
        except CustomerAlreadyExists as exc:
            return _detail(str(exc), status.HTTP_409_CONFLICT)

        return Response(CustomerSerializer(customer).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        try:
            self._service.delete_customer(pk)
        except CustomerNotFound:
            return _not_found()
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Address book
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="addresses")
    def add_address(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/customers/{pk}/addresses/"""
        serializer = AddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = AddressDTO(**serializer.validated_data)
            customer = self._service.add_address(pk, dto)
        except DTOValidationError as exc:
            return dto_error_response(exc)
        except CustomerNotFound:
            return _not_found()
        except AddressLimitReached as exc:
            return _detail(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"addresses/(?P<address_id>[^/.]+)",
    )
    def remove_address(
        self, request: Request, pk: str | None = None, address_id: str | None = None
    ) -> Response:
        """DELETE /api/v1/customers/{pk}/addresses/{address_id}/"""
        try:
            customer = self._service.remove_address(pk, address_id)
        except CustomerNotFound:
            return _not_found()
        except AddressNotFound:
            return _not_found("Address not found.")
        return Response(CustomerSerializer(customer).data)
