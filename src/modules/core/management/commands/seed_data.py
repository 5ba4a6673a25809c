from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.baking.repositories import BakingDjangoRepository
from modules.baking.services import BakingService
from modules.customers.dtos import AddressDTO, CreateCustomerDTO
from modules.customers.exceptions import CustomerNotFound
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import CustomerService
from modules.delivery.dtos import AssignDriverDTO
from modules.delivery.services import DeliveryService
from modules.kitchen.services import KitchenService
from modules.orders.constants import DriverType
from modules.orders.dtos import CreateOrderDTO
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService

SEED_NOTE_PREFIX = "Seed order"
SEED_USER = "seed"

CUSTOMERS = [
    ("Ayu Lestari", "0812-3456-7890", "Menteng"),
    ("Budi Santoso", "0813-2222-1111", "Kemang"),
    ("Citra Dewi", "0811-9876-5432", "Kuningan"),
    ("Dimas Pratama", "0815-4444-3333", "Senopati"),
    ("Eka Putri", "0817-1212-3434", "Pondok Indah"),
    ("Fajar Nugroho", "0819-5656-7878", "Kelapa Gading"),
]
CAKES = [
    ("round", "16cm", "chocolate"),
    ("round", "20cm", "vanilla"),
    ("square", "20cm", "red velvet"),
    ("round", "16cm", "pandan"),
    ("heart", "18cm", "strawberry"),
]
SLOTS = ["slot1", "slot2", "slot3"]

# How far each seeded order is pushed through the workflow.
STAGES = [
    "draft",
    "queue",
    "queue",
    "kitchen",
    "kitchen",
    "decorating",
    "photo",
    "ready",
    "ready",
    "delivery",
    "delivered",
    "cancelled",
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=24)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        customers = self._seed_customers()
        orders_created = self._seed_orders(options["orders"], customers)
        sync = BakingService(
            baking_repository=BakingDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        ).sync_tasks_from_orders()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"customers={len(customers)}, "
                f"orders={orders_created}, "
                f"baking_tasks={len(sync.created)}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        for username in ("kitchen", "delivery", "baker"):
            if not User.objects.filter(username=username).exists():
                User.objects.create_user(
                    username, password=f"{username}123", is_staff=True
                )
                created += 1
        return created

    def _seed_customers(self) -> list:
        service = CustomerService(repository=CustomerDjangoRepository())
        customers = []
        for name, phone, area in CUSTOMERS:
            try:
                customer = service.find_by_whatsapp(phone)
            except CustomerNotFound:
                customer = service.create_customer(
                    CreateCustomerDTO(
                        name=name,
                        whatsapp_number=phone,
                        addresses=[
                            AddressDTO(
                                text=f"Jl. {area} No. {random.randint(1, 99)}",
                                area=area,
                            )
                        ],
                    )
                )
            customers.append(customer)
        return customers

    def _seed_orders(self, count: int, customers: list) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.filter(notes__startswith=SEED_NOTE_PREFIX).exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        repository = OrderDjangoRepository()
        orders = OrderService(
            order_repository=repository, customer_repository=CustomerDjangoRepository()
        )
        kitchen = KitchenService(order_repository=repository, order_service=orders)
        delivery = DeliveryService(order_repository=repository, order_service=orders)

        today = timezone.localdate()
        for i in range(count):
            customer = random.choice(customers)
            shape, size, flavor = random.choice(CAKES)
            stage = STAGES[i % len(STAGES)]
            order = orders.create_order(
                CreateOrderDTO(
                    customer_id=customer.id,
                    delivery_date=today + timedelta(days=random.randint(0, 6)),
                    delivery_time_slot=random.choice(SLOTS),
                    cake_shape=shape,
                    cake_size=size,
                    cake_flavor=flavor,
                    cake_text=f"Happy Birthday {customer.name.split()[0]}",
                    notes=f"{SEED_NOTE_PREFIX} {i + 1}",
                    total_price=Decimal(random.randrange(350, 1500, 50)) * 1000,
                    submit=stage != "draft",
                ),
                user=SEED_USER,
            )
            self._advance(order.id, stage, orders, kitchen, delivery)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return count

    def _advance(self, order_id, stage, orders, kitchen, delivery) -> None:
        if stage in {"draft", "queue"}:
            return
        if stage == "cancelled":
            orders.cancel_order(order_id, user=SEED_USER, note="Customer changed plans")
            return

        kitchen.start_production(order_id, user=SEED_USER)
        if stage == "kitchen":
            return
        for _ in range(3):
            kitchen.advance(order_id, user=SEED_USER)
        if stage == "decorating":
            return
        kitchen.advance(order_id, user=SEED_USER)
        if stage == "photo":
            return
        kitchen.approve_photo(order_id, user=SEED_USER)
        delivery.assign_driver(
            order_id,
            AssignDriverDTO(driver_type=random.choice([DriverType.DRIVER_1, DriverType.DRIVER_2])),
            user=SEED_USER,
        )
        if stage == "ready":
            return
        delivery.start_delivery(order_id, user=SEED_USER)
        if stage == "delivery":
            return
        delivery.confirm_delivery(order_id, user=SEED_USER)
