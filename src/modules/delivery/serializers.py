from __future__ import annotations

from rest_framework import serializers

from modules.delivery.models import DeliveryTrip, TripStatus, TripStop
from modules.delivery.services import DATE_FILTERS, STATUS_FILTERS
from modules.orders.constants import DriverType, TimeStatus


class AssignDriverSerializer(serializers.Serializer):
    driver_type = serializers.ChoiceField(choices=DriverType.choices)
    driver_name = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    vehicle_info = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    is_preliminary = serializers.BooleanField(
        required=False, allow_null=True, default=None
    )


class FeedbackSerializer(serializers.Serializer):
    feedback = serializers.CharField(allow_blank=True)


class ConfirmDeliverySerializer(serializers.Serializer):
    note = serializers.CharField(required=False, default="", allow_blank=True)


class DeliveryListQuerySerializer(serializers.Serializer):
    date = serializers.ChoiceField(choices=DATE_FILTERS, required=False, default="today")
    status = serializers.ChoiceField(
        choices=sorted(STATUS_FILTERS), required=False, default="all"
    )
    time_status = serializers.ChoiceField(
        choices=TimeStatus.choices, required=False, allow_null=True, default=None
    )
    slot = serializers.CharField(required=False, allow_blank=True, default="")


class TripStopSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    customer_name = serializers.CharField(source="order.customer_name", read_only=True)
    delivery_area = serializers.CharField(source="order.delivery_area", read_only=True)
    delivery_time_slot = serializers.CharField(
        source="order.delivery_time_slot", read_only=True
    )
    order_status = serializers.CharField(source="order.status", read_only=True)

    class Meta:
        model = TripStop
        fields = [
            "order",
            "sequence",
            "order_number",
            "customer_name",
            "delivery_area",
            "delivery_time_slot",
            "order_status",
        ]
        read_only_fields = fields


class TripSerializer(serializers.ModelSerializer):
    stops = TripStopSerializer(many=True, read_only=True)

    class Meta:
        model = DeliveryTrip
        fields = [
            "id",
            "name",
            "driver_type",
            "driver_name",
            "trip_date",
            "trip_number",
            "status",
            "departure_time",
            "notes",
            "stops",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreateTripSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    driver_type = serializers.ChoiceField(choices=DriverType.choices)
    driver_name = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    trip_date = serializers.DateField()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class TripStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TripStatus.choices)


class TripOrderSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class TripListQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False, allow_null=True, default=None)
    driver_type = serializers.ChoiceField(
        choices=DriverType.choices, required=False, allow_null=True, default=None
    )


class UnassignedQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
