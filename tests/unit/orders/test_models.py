"""Unit tests for the order models."""

from __future__ import annotations

import re

import pytest
from django.core.exceptions import ValidationError

from modules.orders.constants import (
    DriverType,
    KitchenStatus,
    OrderLogType,
    OrderStatus,
)
from modules.orders.models import DeliveryAssignment, OrderLog

pytestmark = pytest.mark.unit


class TestOrder:
    def test_order_number_generated_on_save(self, make_order):
        order = make_order()
        assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{6}", order.order_number)

    def test_order_numbers_are_unique(self, make_order):
        numbers = {make_order().order_number for _ in range(5)}
        assert len(numbers) == 5

    def test_cancelled_is_terminal(self, make_order):
        assert make_order(status=OrderStatus.CANCELLED).is_terminal is True
        assert make_order(status=OrderStatus.FINISHED).is_terminal is False

    def test_can_transition_to_uses_policy(self, make_order):
        order = make_order(status=OrderStatus.READY_TO_DELIVER)
        assert order.can_transition_to(OrderStatus.CANCELLED) is True
        assert order.can_transition_to(OrderStatus.IN_DELIVERY) is False

    def test_kitchen_status_outside_kitchen_is_invalid(self, make_order):
        order = make_order(status=OrderStatus.READY_TO_DELIVER)
        order.kitchen_status = KitchenStatus.DECORATING
        with pytest.raises(ValidationError) as exc_info:
            order.full_clean(exclude=["order_number"])
        assert "kitchen_status" in exc_info.value.message_dict

    def test_kitchen_status_inside_kitchen_is_valid(self, make_order):
        order = make_order(
            status=OrderStatus.WAITING_PHOTO,
            kitchen_status=KitchenStatus.DONE_WAITING_APPROVAL,
        )
        order.full_clean(exclude=["order_number"])


class TestOrderLog:
    def test_entries_cannot_be_edited(self, make_order):
        entry = OrderLog.objects.create(
            order=make_order(), type=OrderLogType.NOTE, note="original"
        )
        entry.note = "rewritten"
        with pytest.raises(ValidationError):
            entry.save()
        entry.refresh_from_db()
        assert entry.note == "original"

    def test_entries_cannot_be_deleted(self, make_order):
        entry = OrderLog.objects.create(order=make_order(), type=OrderLogType.NOTE)
        with pytest.raises(ValidationError):
            entry.delete()
        assert OrderLog.objects.filter(pk=entry.pk).exists()


class TestDeliveryAssignment:
    def test_third_party_display_name_includes_driver(self, make_order):
        assignment = DeliveryAssignment.objects.create(
            order=make_order(),
            driver_type=DriverType.THIRD_PARTY,
            driver_name="GoSend Rudi",
        )
        assert assignment.display_name == "3rd Party (GoSend Rudi)"

    def test_in_house_display_name(self, make_order):
        assignment = DeliveryAssignment.objects.create(
            order=make_order(), driver_type=DriverType.DRIVER_2
        )
        assert assignment.display_name == "Driver 2"

    def test_preliminary_assignment_invalid_once_in_delivery(self, make_order):
        assignment = DeliveryAssignment(
            order=make_order(status=OrderStatus.IN_DELIVERY),
            driver_type=DriverType.DRIVER_1,
            is_preliminary=True,
        )
        with pytest.raises(ValidationError):
            assignment.full_clean()
