"""Integration tests for the delivery trip planner API."""

from __future__ import annotations

import pytest

from modules.orders.constants import DriverType, OrderStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/delivery-trips/"
MISSING_ID = "018f0000-0000-7000-8000-000000000000"


def _create_trip(client, **overrides):
    data = {
        "name": "Morning run",
        "driver_type": DriverType.DRIVER_1,
        "trip_date": "2026-10-20",
    }
    data.update(overrides)
    return client.post(URL, data, format="json")


class TestTripPlanner:
    def test_plan_a_trip(self, auth_client, make_order):
        order = make_order(status=OrderStatus.READY_TO_DELIVER)
        created = _create_trip(auth_client)
        assert created.status_code == 201
        assert created.data["trip_number"] == 1
        trip_url = f"{URL}{created.data['id']}/"

        unassigned = auth_client.get(f"{URL}unassigned/", {"date": "2026-10-20"})
        assert [o["id"] for o in unassigned.data] == [str(order.id)]

        added = auth_client.post(
            f"{trip_url}orders/", {"order_id": str(order.id)}, format="json"
        )
        assert added.status_code == 200
        assert added.data["stops"][0]["order_number"] == order.order_number
        assert added.data["stops"][0]["sequence"] == 1
        assert auth_client.get(f"{URL}unassigned/", {"date": "2026-10-20"}).data == []

        started = auth_client.post(
            f"{trip_url}status/", {"status": "in-progress"}, format="json"
        )
        assert started.status_code == 200
        assert started.data["departure_time"] is not None

    def test_list_by_date(self, auth_client):
        _create_trip(auth_client)
        _create_trip(auth_client, trip_date="2026-10-21")

        response = auth_client.get(URL, {"date": "2026-10-21"})

        assert response.status_code == 200
        assert [t["trip_date"] for t in response.data] == ["2026-10-21"]

    def test_third_party_without_name(self, auth_client):
        response = _create_trip(auth_client, driver_type=DriverType.THIRD_PARTY)
        assert response.status_code == 400

    def test_order_not_ready_rejected(self, auth_client, make_order):
        order = make_order(status=OrderStatus.IN_KITCHEN)
        trip_id = _create_trip(auth_client).data["id"]

        response = auth_client.post(
            f"{URL}{trip_id}/orders/", {"order_id": str(order.id)}, format="json"
        )

        assert response.status_code == 400

    def test_remove_order(self, auth_client, make_order):
        order = make_order(status=OrderStatus.READY_TO_DELIVER)
        trip_id = _create_trip(auth_client).data["id"]
        auth_client.post(f"{URL}{trip_id}/orders/", {"order_id": str(order.id)}, format="json")

        response = auth_client.delete(f"{URL}{trip_id}/orders/{order.id}/")

        assert response.status_code == 200
        assert response.data["stops"] == []

    def test_skipping_to_completed_rejected(self, auth_client):
        trip_id = _create_trip(auth_client).data["id"]

        response = auth_client.post(
            f"{URL}{trip_id}/status/", {"status": "completed"}, format="json"
        )

        assert response.status_code == 400

    def test_unknown_trip(self, auth_client):
        response = auth_client.get(f"{URL}{MISSING_ID}/")

        assert response.status_code == 404
        assert response.data == {"detail": "Trip not found."}

    def test_delete_planned_trip(self, auth_client):
        trip_id = _create_trip(auth_client).data["id"]

        assert auth_client.delete(f"{URL}{trip_id}/").status_code == 204
        assert auth_client.get(f"{URL}{trip_id}/").status_code == 404

    def test_requires_authentication(self, api_client):
        assert api_client.get(URL).status_code == 401
