from datetime import date
from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.baking.repositories import BakingDjangoRepository
from modules.baking.services import BakingService
from modules.customers.models import Customer, CustomerAddress
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import CustomerService
from modules.delivery.repositories import TripDjangoRepository
from modules.delivery.services import DeliveryService, TripService
from modules.kitchen.services import KitchenService
from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def user():
    return User.objects.create_user(username="sari", password="testpass123")


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order():
    """Create an order straight through the ORM, bypassing the workflow."""

    def _make(**overrides):
        data = {
            "customer_name": "Ayu Lestari",
            "customer_phone": "0812-3456-7890",
            "delivery_date": date(2026, 10, 20),
            "delivery_time_slot": "slot2",
            "delivery_address": "Jl. Menteng Raya 12",
            "delivery_area": "Menteng",
            "cake_shape": "round",
            "cake_size": "20cm",
            "cake_flavor": "chocolate",
            "total_price": Decimal("450000.00"),
            "status": OrderStatus.IN_QUEUE,
        }
        data.update(overrides)
        return Order.objects.create(**data)

    return _make


@pytest.fixture()
def order_repository():
    return OrderDjangoRepository()


@pytest.fixture()
def customer_repository():
    return CustomerDjangoRepository()


@pytest.fixture()
def customer_service(customer_repository):
    return CustomerService(repository=customer_repository)


@pytest.fixture()
def make_customer():
    """Create a customer (and its addresses) straight through the ORM."""

    def _make(addresses=(), **overrides):
        data = {"name": "Ayu Lestari", "whatsapp_number": "081234567890"}
        data.update(overrides)
        customer = Customer.objects.create(**data)
        for address in addresses:
            CustomerAddress.objects.create(customer=customer, **address)
        return customer

    return _make


@pytest.fixture()
def order_service(order_repository, customer_repository):
    return OrderService(
        order_repository=order_repository, customer_repository=customer_repository
    )


@pytest.fixture()
def kitchen_service(order_repository, order_service):
    return KitchenService(order_repository=order_repository, order_service=order_service)


@pytest.fixture()
def delivery_service(order_repository, order_service):
    return DeliveryService(
        order_repository=order_repository, order_service=order_service
    )


@pytest.fixture()
def trip_service(order_repository):
    return TripService(
        trip_repository=TripDjangoRepository(), order_repository=order_repository
    )


@pytest.fixture()
def baking_service(order_repository):
    return BakingService(
        baking_repository=BakingDjangoRepository(),
        order_repository=order_repository,
    )
