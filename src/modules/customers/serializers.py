"""Customer DRF serializers for API input/output.

Input serializers handle HTTP-level parsing; normalization and business
rules live in the DTOs and the Service Layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.customers.models import MAX_ADDRESSES, Customer, CustomerAddress


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerAddress
        fields = ["id", "text", "delivery_notes", "area", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]


class CustomerSerializer(serializers.ModelSerializer):
    addresses = AddressSerializer(many=True, read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id",
            "name",
            "whatsapp_number",
            "email",
            "addresses",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreateCustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    whatsapp_number = serializers.CharField(max_length=32)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    addresses = AddressSerializer(many=True, required=False, default=list)

    def validate_addresses(self, value):
        if len(value) > MAX_ADDRESSES:
            raise serializers.ValidationError(
                f"A customer can have at most {MAX_ADDRESSES} addresses."
            )
        return value

    def validate_email(self, value):
        return value or None


class UpdateCustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    whatsapp_number = serializers.CharField(max_length=32, required=False)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)

    def validate_email(self, value):
        return value or None
