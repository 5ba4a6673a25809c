"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus, PrintType
from modules.orders.models import (
    CakeRevision,
    DeliveryAssignment,
    Order,
    OrderLog,
    PrintEvent,
)
from modules.orders.workflow import derive_kitchen_status, get_order_time_status

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    ``submit`` places the order in the queue; otherwise it is saved as a
    draft.  Either ``customer_name`` or a saved ``customer_id`` is required.
    """

    customer_id = serializers.UUIDField(required=False, allow_null=True)
    customer_name = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    customer_phone = serializers.CharField(
        max_length=32, required=False, default="", allow_blank=True
    )
    delivery_date = serializers.DateField()
    delivery_time_slot = serializers.CharField(
        max_length=64, required=False, default="", allow_blank=True
    )
    delivery_address = serializers.CharField(
        required=False, default="", allow_blank=True
    )
    delivery_area = serializers.CharField(
        max_length=100, required=False, default="", allow_blank=True
    )
    cake_shape = serializers.CharField(max_length=50)
    cake_size = serializers.CharField(max_length=50)
    cake_flavor = serializers.CharField(max_length=100)
    cake_tier = serializers.IntegerField(min_value=1, required=False, default=1)
    cake_design = serializers.CharField(required=False, default="", allow_blank=True)
    cake_text = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    tier_details = serializers.ListField(
        child=serializers.DictField(), required=False, default=list
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    total_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, default="0.00"
    )
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, default=list
    )
    submit = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get("customer_id") and not attrs["customer_name"].strip():
            raise serializers.ValidationError(
                {"customer_name": "This field is required without customer_id."}
            )
        return attrs


class UpdateOrderSerializer(serializers.Serializer):
    """Partial update payload; every field is optional."""

    customer_name = serializers.CharField(max_length=255, required=False)
    customer_phone = serializers.CharField(
        max_length=32, required=False, allow_blank=True
    )
    delivery_date = serializers.DateField(required=False)
    delivery_time_slot = serializers.CharField(
        max_length=64, required=False, allow_blank=True
    )
    delivery_address = serializers.CharField(required=False, allow_blank=True)
    delivery_area = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
    cake_shape = serializers.CharField(max_length=50, required=False)
    cake_size = serializers.CharField(max_length=50, required=False)
    cake_flavor = serializers.CharField(max_length=100, required=False)
    cake_tier = serializers.IntegerField(min_value=1, required=False)
    cake_design = serializers.CharField(required=False, allow_blank=True)
    cake_text = serializers.CharField(max_length=255, required=False, allow_blank=True)
    tier_details = serializers.ListField(child=serializers.DictField(), required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    total_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False
    )
    customer_feedback = serializers.CharField(required=False, allow_blank=True)
    actual_delivery_time = serializers.DateTimeField(required=False)
    finished_cake_photos = serializers.ListField(
        child=serializers.CharField(max_length=500), required=False
    )
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    note = serializers.CharField(required=False, default="", allow_blank=True)


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    note = serializers.CharField(required=False, default="", allow_blank=True)


class NoteSerializer(serializers.Serializer):
    note = serializers.CharField()


class CancelSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, default="", allow_blank=True)


class PrintSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PrintType.choices)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderLog
        fields = [
            "id",
            "timestamp",
            "type",
            "previous_status",
            "new_status",
            "note",
            "user",
            "metadata",
        ]
        read_only_fields = fields


class DeliveryAssignmentSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = DeliveryAssignment
        fields = [
            "driver_type",
            "driver_name",
            "display_name",
            "vehicle_info",
            "notes",
            "is_preliminary",
            "assigned_at",
        ]
        read_only_fields = fields


class PrintEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = PrintEvent
        fields = ["id", "type", "timestamp", "user"]
        read_only_fields = fields


class CakeRevisionSerializer(serializers.ModelSerializer):
    class Meta:
        model = CakeRevision
        fields = ["id", "timestamp", "notes", "photos", "requested_by"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for an order with its assignment and history.

    ``kitchen_status`` is the derived value (see ``derive_kitchen_status``).
    """

    kitchen_status = serializers.SerializerMethodField()
    delivery_assignment = serializers.SerializerMethodField()
    logs = OrderLogSerializer(many=True, read_only=True)
    print_history = PrintEventSerializer(many=True, read_only=True)
    revisions = CakeRevisionSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "customer_name",
            "customer_phone",
            "delivery_date",
            "delivery_time_slot",
            "delivery_address",
            "delivery_area",
            "cake_shape",
            "cake_size",
            "cake_flavor",
            "cake_tier",
            "cake_design",
            "cake_text",
            "tier_details",
            "notes",
            "total_price",
            "tags",
            "status",
            "kitchen_status",
            "revision_count",
            "archived_date",
            "actual_delivery_time",
            "customer_feedback",
            "finished_cake_photos",
            "delivery_assignment",
            "logs",
            "print_history",
            "revisions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_kitchen_status(self, obj: Order) -> str | None:
        return derive_kitchen_status(obj)

    def get_delivery_assignment(self, obj: Order) -> dict | None:
        assignment = getattr(obj, "delivery_assignment", None)
        if assignment is None:
            return None
        return DeliveryAssignmentSerializer(assignment).data


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested history)."""

    kitchen_status = serializers.SerializerMethodField()
    time_status = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_name",
            "delivery_date",
            "delivery_time_slot",
            "delivery_area",
            "cake_shape",
            "cake_size",
            "cake_flavor",
            "status",
            "kitchen_status",
            "time_status",
            "total_price",
            "created_at",
        ]
        read_only_fields = fields

    def get_kitchen_status(self, obj: Order) -> str | None:
        return derive_kitchen_status(obj)

    def get_time_status(self, obj: Order) -> str | None:
        return get_order_time_status(obj)
