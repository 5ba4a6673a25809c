from __future__ import annotations

from rest_framework import serializers

from modules.kitchen.services import QUEUE_TIME_FILTERS
from modules.orders.constants import KITCHEN_SEQUENCE, LEGACY_KITCHEN_STATUS_ALIASES


class KitchenStatusSerializer(serializers.Serializer):
    kitchen_status = serializers.ChoiceField(
        choices=[*KITCHEN_SEQUENCE, *LEGACY_KITCHEN_STATUS_ALIASES]
    )


class ApprovePhotoSerializer(serializers.Serializer):
    photos = serializers.ListField(
        child=serializers.CharField(max_length=500), required=False, default=list
    )


class RevisionRequestSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)
    photos = serializers.ListField(
        child=serializers.CharField(max_length=500), required=False, default=list
    )


class BoardQuerySerializer(serializers.Serializer):
    time_filter = serializers.ChoiceField(
        choices=QUEUE_TIME_FILTERS, required=False, default="all"
    )
