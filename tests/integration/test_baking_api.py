"""Integration tests for the baker page API."""

from __future__ import annotations

import pytest
from freezegun import freeze_time

from modules.baking.models import BakingTask, BakingTaskStatus, CakeInventoryItem
from modules.orders.constants import KitchenStatus, OrderStatus

pytestmark = pytest.mark.integration

TASKS = "/api/v1/baking/tasks/"
PRODUCTION = "/api/v1/baking/production/"
INVENTORY = "/api/v1/baking/inventory/"


def _manual_task(auth_client, **overrides):
    data = {
        "cake_shape": "round",
        "cake_size": "18cm",
        "cake_flavor": "matcha",
        "quantity": 2,
    }
    data.update(overrides)
    return auth_client.post(TASKS, data, format="json")


class TestTasks:
    @freeze_time("2026-10-19 02:00:00")
    def test_sync_aggregates_waiting_orders(self, auth_client, make_order):
        for _ in range(2):
            make_order(status=OrderStatus.IN_KITCHEN, kitchen_status=KitchenStatus.WAITING_BAKER)

        response = auth_client.post(f"{TASKS}sync/")

        assert response.status_code == 200
        assert len(response.data["created"]) == 1
        assert response.data["updated"] == []

        [task] = auth_client.get(TASKS).data
        assert task["quantity"] == 2
        assert task["quantity_remaining"] == 2
        assert task["is_manual"] is False

    @freeze_time("2026-10-19 02:00:00")
    def test_manual_task_lifecycle(self, auth_client):
        created = _manual_task(auth_client)
        assert created.status_code == 201
        assert created.data["is_priority"] is True
        assert created.data["due_date"] == "2026-10-19"
        task_id = created.data["id"]

        cancelled = auth_client.post(f"{TASKS}{task_id}/cancel/", {"reason": "Out of matcha"}, format="json")
        assert cancelled.data["status"] == BakingTaskStatus.CANCELLED
        assert cancelled.data["cancellation_reason"] == "Out of matcha"

        acknowledged = auth_client.post(f"{TASKS}{task_id}/acknowledge/", {}, format="json")
        assert acknowledged.status_code == 200
        assert acknowledged.data["cancelled"] is True

        assert auth_client.get(f"{TASKS}{task_id}/").status_code == 404

    def test_status_filter(self, auth_client):
        first = _manual_task(auth_client).data
        _manual_task(auth_client, cake_flavor="taro")
        auth_client.post(f"{TASKS}{first['id']}/cancel/", {}, format="json")

        pending = auth_client.get(TASKS, {"status": "pending"})
        everything = auth_client.get(TASKS, {"status": "all"})

        assert [t["cake_flavor"] for t in pending.data] == ["taro"]
        assert len(everything.data) == 2

    def test_delete_manual_task(self, auth_client):
        task_id = _manual_task(auth_client).data["id"]

        response = auth_client.delete(f"{TASKS}{task_id}/")

        assert response.status_code == 200
        assert response.data["notes"] == "Task deleted manually"
        assert BakingTask.objects.alive().count() == 0

    def test_order_task_cannot_be_deleted(self, auth_client, make_order):
        make_order(status=OrderStatus.IN_KITCHEN, kitchen_status=KitchenStatus.WAITING_BAKER)
        auth_client.post(f"{TASKS}sync/")
        task = BakingTask.objects.get()

        response = auth_client.delete(f"{TASKS}{task.id}/")

        assert response.status_code == 400

    def test_unknown_task(self, auth_client):
        response = auth_client.get(f"{TASKS}018f0000-0000-7000-8000-000000000000/")

        assert response.status_code == 404
        assert response.data == {"detail": "Baking task not found."}


class TestProductionAndInventory:
    def test_production_against_task_updates_inventory(self, auth_client):
        task_id = _manual_task(auth_client, quantity=1).data["id"]

        response = auth_client.post(
            PRODUCTION,
            {
                "task_id": task_id,
                "quantity": 1,
                "baker": "Rina",
                "quality_checks": {"correct_size": False, "notes": "Slightly small"},
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.data["task_id"] == task_id
        assert auth_client.get(f"{TASKS}{task_id}/").data["status"] == BakingTaskStatus.COMPLETED
        [item] = auth_client.get(INVENTORY).data
        assert (item["cake_flavor"], item["quantity"]) == ("matcha", 1)

        log = auth_client.get(PRODUCTION)
        assert log.data["count"] == 1
        assert log.data["results"][0]["quality_checks"]["correct_size"] is False

    def test_production_without_task_needs_spec(self, auth_client):
        response = auth_client.post(PRODUCTION, {"quantity": 2}, format="json")

        assert response.status_code == 400

    def test_production_on_completed_task(self, auth_client):
        task_id = _manual_task(auth_client, quantity=1).data["id"]
        auth_client.post(PRODUCTION, {"task_id": task_id, "quantity": 1}, format="json")

        response = auth_client.post(PRODUCTION, {"task_id": task_id, "quantity": 1}, format="json")

        assert response.status_code == 400

    def test_stock_take(self, auth_client):
        item = CakeInventoryItem.objects.create(
            cake_shape="square", cake_size="20cm", cake_flavor="lapis", quantity=5
        )

        response = auth_client.patch(f"{INVENTORY}{item.id}/", {"quantity": 3}, format="json")
        negative = auth_client.patch(f"{INVENTORY}{item.id}/", {"quantity": -1}, format="json")

        assert response.status_code == 200
        assert response.data["quantity"] == 3
        assert negative.status_code == 400

    def test_stock_take_unknown_item(self, auth_client):
        response = auth_client.patch(
            f"{INVENTORY}018f0000-0000-7000-8000-000000000000/", {"quantity": 1}, format="json"
        )
        assert response.status_code == 404
