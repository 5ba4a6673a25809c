from __future__ import annotations

from rest_framework import serializers

from modules.baking.models import (
    BakingTask,
    BakingTaskStatus,
    CakeInventoryItem,
    ProductionLogEntry,
)

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class BakingTaskSerializer(serializers.ModelSerializer):
    quantity_remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = BakingTask
        fields = [
            "id",
            "cake_shape",
            "cake_size",
            "cake_flavor",
            "height",
            "quantity",
            "quantity_completed",
            "quantity_remaining",
            "due_date",
            "status",
            "order_ids",
            "quality_checks",
            "cancellation_reason",
            "is_manual",
            "is_priority",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductionLogEntrySerializer(serializers.ModelSerializer):
    task_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = ProductionLogEntry
        fields = [
            "id",
            "task_id",
            "cake_shape",
            "cake_size",
            "cake_flavor",
            "quantity",
            "completed_at",
            "baker",
            "quality_checks",
            "notes",
            "cancelled",
            "cancellation_reason",
            "is_manual",
        ]
        read_only_fields = fields


class CakeInventoryItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = CakeInventoryItem
        fields = [
            "id",
            "cake_shape",
            "cake_size",
            "cake_flavor",
            "height",
            "quantity",
            "last_updated",
        ]
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class QualityChecksSerializer(serializers.Serializer):
    properly_baked = serializers.BooleanField(required=False, default=True)
    correct_size = serializers.BooleanField(required=False, default=True)
    good_texture = serializers.BooleanField(required=False, default=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ProductionEntryInputSerializer(serializers.Serializer):
    task_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    cake_shape = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    cake_size = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    cake_flavor = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    baker = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    quality_checks = QualityChecksSerializer(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ManualTaskInputSerializer(serializers.Serializer):
    cake_shape = serializers.CharField(max_length=50)
    cake_size = serializers.CharField(max_length=50)
    cake_flavor = serializers.CharField(max_length=100)
    quantity = serializers.IntegerField(min_value=1)
    due_date = serializers.DateField(required=False, allow_null=True, default=None)
    height = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class CancelTaskSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AcknowledgeTaskSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class InventoryUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)


class TaskListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[*BakingTaskStatus.values, "all"], required=False, default="all"
    )
