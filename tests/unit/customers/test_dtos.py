"""Unit tests for Customer DTOs (Pydantic v2, frozen)."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from modules.customers.dtos import AddressDTO, CreateCustomerDTO, UpdateCustomerDTO
from modules.customers.models import MAX_ADDRESSES

pytestmark = pytest.mark.unit


class TestCreateCustomerDTO:
    @pytest.mark.parametrize(
        "raw, stored",
        [
            ("0812-3456-7890", "081234567890"),
            (" 0812 3456 7890 ", "081234567890"),
            ("+62 812-3456-7890", "+6281234567890"),
        ],
    )
    def test_whatsapp_number_is_normalized(self, raw, stored):
        dto = CreateCustomerDTO(name="Ayu", whatsapp_number=raw)
        assert dto.whatsapp_number == stored

    def test_too_short_number(self):
        with pytest.raises(ValidationError):
            CreateCustomerDTO(name="Ayu", whatsapp_number="0812")

    def test_blank_name(self):
        with pytest.raises(ValidationError):
            CreateCustomerDTO(name="  ", whatsapp_number="081234567890")

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            CreateCustomerDTO(name="Ayu", whatsapp_number="081234567890", email="ayu@")

    def test_address_limit(self):
        addresses = [{"text": f"Jl. Menteng {i}"} for i in range(MAX_ADDRESSES + 1)]
        with pytest.raises(ValidationError):
            CreateCustomerDTO(name="Ayu", whatsapp_number="081234567890", addresses=addresses)


class TestAddressDTO:
    def test_area_defaults_to_jakarta(self):
        assert AddressDTO(text="Jl. Menteng 1").area == "Jakarta"

    def test_blank_text(self):
        with pytest.raises(ValidationError):
            AddressDTO(text=" ")


class TestUpdateCustomerDTO:
    def test_field_changes_only_contains_sent_fields(self):
        assert UpdateCustomerDTO(name="Ayu L.").field_changes() == {"name": "Ayu L."}

    def test_explicit_null_email_clears_it(self):
        assert UpdateCustomerDTO(email=None).field_changes() == {"email": ""}
