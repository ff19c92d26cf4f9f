import pytest

from reach.domain.validation import normalise_customer_edit, validate_customer_edit
from reach.errors import ValidationError


def test_valid_payload_is_normalised():
    payload = validate_customer_edit({"name": "Shop", "lat": "24.5", "lng": 46, "visitNotes": "x"})
    assert payload == {"name": "Shop", "lat": 24.5, "lng": 46, "visitNotes": "x"}


def test_blank_coordinates_become_none():
    assert normalise_customer_edit({"lat": "  "}) == {"lat": None}


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"name": ""}, "name"),
        ({"name": "x" * 101}, "name"),
        ({"name": "   "}, "name"),
        ({"lat": 91}, "lat"),
        ({"lng": -181}, "lng"),
        ({"lat": "north"}, "lat"),
        ({"phone": "12ab"}, "phone"),
        ({"phone": "123"}, "phone"),
    ],
)
def test_invalid_fields_are_reported(payload, field):
    with pytest.raises(ValidationError) as exc_info:
        validate_customer_edit(payload)
    assert field in exc_info.value.field_errors


def test_phone_formats():
    assert validate_customer_edit({"phone": "+966 (55) 123-4567"})["phone"] == "+966 (55) 123-4567"
    assert validate_customer_edit({"phone": ""})["phone"] == ""
    assert validate_customer_edit({"phone": None})["phone"] is None


def test_camel_case_keys_are_checked():
    with pytest.raises(ValidationError) as exc_info:
        validate_customer_edit({"nameEn": ""})
    assert "name" in exc_info.value.field_errors


def test_all_errors_are_collected():
    with pytest.raises(ValidationError) as exc_info:
        validate_customer_edit({"name": "", "lat": 100, "lng": 200})
    assert set(exc_info.value.field_errors) == {"name", "lat", "lng"}
