"""Unit tests for BaseModel and SoftDeleteModel.

``Order`` exercises the plain base model; ``BakingTask`` is the
soft-deletable model of the project.
"""

from __future__ import annotations

import uuid
from datetime import date

import pytest

from modules.baking.models import BakingTask
from modules.orders.models import Order

pytestmark = pytest.mark.unit


@pytest.fixture()
def make_task():
    def _make(**overrides):
        data = {
            "cake_shape": "round",
            "cake_size": "20cm",
            "cake_flavor": "vanilla",
            "quantity": 2,
            "due_date": date(2026, 10, 20),
        }
        data.update(overrides)
        return BakingTask.objects.create(**data)

    return _make


# ---------------------------------------------------------------------------
# BaseModel tests
# ---------------------------------------------------------------------------


class TestBaseModel:
    """Tests for UUIDv7 PK and timestamp behaviour."""

    def test_id_is_uuid_version_7(self, make_order):
        order = make_order()
        assert isinstance(order.id, uuid.UUID)
        assert order.id.version == 7

    def test_ids_are_time_ordered(self, make_order):
        """UUIDv7 encodes timestamp, so sequential creates yield ordered IDs."""
        first = make_order()
        second = make_order()
        assert str(first.id) < str(second.id)

    def test_updated_at_changes_on_save(self, make_order):
        order = make_order()
        original_updated = order.updated_at
        order.notes = "Extra candles"
        order.save()
        order.refresh_from_db()
        assert order.updated_at > original_updated

    def test_save_with_update_fields_includes_updated_at(self, make_order):
        """The save() guard must inject updated_at into update_fields."""
        order = make_order()
        original_updated = order.updated_at
        original_created = order.created_at
        order.notes = "No nuts"
        order.save(update_fields=["notes"])
        order.refresh_from_db()
        assert order.updated_at > original_updated
        assert order.created_at == original_created

    def test_id_is_not_editable(self):
        assert Order._meta.get_field("id").editable is False


# ---------------------------------------------------------------------------
# SoftDeleteModel tests
# ---------------------------------------------------------------------------


class TestSoftDeleteModel:
    def test_new_task_is_not_deleted(self, make_task):
        task = make_task()
        assert task.is_deleted is False
        assert task.deleted_at is None

    def test_delete_sets_deleted_at(self, make_task):
        task = make_task()
        result = task.delete()
        task.refresh_from_db()
        assert task.is_deleted is True
        assert result == (1, {"baking.BakingTask": 1})

    def test_delete_is_noop_if_already_deleted(self, make_task):
        task = make_task()
        task.delete()
        assert task.delete() == (0, {})

    def test_soft_deleted_still_in_objects_all(self, make_task):
        task = make_task()
        task.delete()
        assert BakingTask.objects.filter(pk=task.pk).exists()

    def test_alive_and_dead(self, make_task):
        alive = make_task()
        dead = make_task()
        dead.delete()
        assert list(BakingTask.objects.alive()) == [alive]
        assert list(BakingTask.objects.dead()) == [dead]

    def test_hard_delete_removes_from_db(self, make_task):
        task = make_task()
        task.hard_delete()
        assert not BakingTask.objects.filter(pk=task.pk).exists()
