"""Unit tests for checkout form validation rules."""

import random
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from storefront.api.middleware.error_handler import ValidationError
from storefront.services.validation import (
    CheckoutForm,
    format_card_number,
    format_phone_number,
    luhn_is_valid,
    mask_card_number,
    validate_checkout_form,
)

JUNE_2024 = date(2024, 6, 1)

# 4532015112830366 in Arabic-Indic digits
ARABIC_INDIC_CARD = "٤٥٣٢٠١٥١١٢٨٣٠٣٦٦"


def _luhn_check_digit(prefix: str) -> str:
    """Compute the digit that makes prefix + digit Luhn-valid."""
    total = 0
    for position, char in enumerate(reversed(prefix)):
        digit = int(char)
        # Positions shift by one once the check digit is appended
        if position % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return str((10 - total % 10) % 10)


def _validate(customer_form: dict[str, str], **changes: object) -> CheckoutForm:
    return validate_checkout_form({**customer_form, **changes}, today=JUNE_2024)


def _error_types(customer_form: dict[str, str], **changes: object) -> dict[str, str]:
    """Validate with some fields replaced and return ``{field: error type}``."""
    with pytest.raises(ValidationError) as exc_info:
        _validate(customer_form, **changes)
    return {".".join(d["loc"]): d["type"] for d in exc_info.value.details}


class TestCardNumber:
    """Tests for card number validation and the Luhn checksum."""

    def test_accepts_valid_card(self, customer_form: dict[str, str]) -> None:
        """Test that a Luhn-valid 16-digit number is accepted."""
        assert _validate(customer_form, cardNumber="4532015112830366").card_number == "4532015112830366"

    def test_rejects_bad_checksum(self, customer_form: dict[str, str]) -> None:
        """Test that changing the check digit is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            _validate(customer_form, cardNumber="4532015112830367")

        assert exc_info.value.fields == {"cardNumber": "Invalid card number"}

    def test_strips_formatting(self, customer_form: dict[str, str]) -> None:
        """Test that spaces and dashes are removed before validation."""
        assert _validate(customer_form, cardNumber="4532 0151-1283 0366").card_number == "4532015112830366"

    @pytest.mark.parametrize("value", ["453201511283036", "45320151128303660", "", ARABIC_INDIC_CARD])
    def test_rejects_wrong_length(self, customer_form: dict[str, str], value: str) -> None:
        """Test that anything other than 16 ASCII digits is rejected."""
        assert "cardNumber" in _error_types(customer_form, cardNumber=value)

    def test_exactly_one_check_digit_is_valid(self) -> None:
        """Test that for random 15-digit prefixes only the Luhn check digit passes."""
        rng = random.Random(1234)
        for _ in range(50):
            prefix = "".join(rng.choice("0123456789") for _ in range(15))
            check = _luhn_check_digit(prefix)
            for digit in "0123456789":
                assert luhn_is_valid(prefix + digit) is (digit == check)


class TestExpiryDate:
    """Tests for expiry date validation."""

    def test_past_month_is_expired(self, customer_form: dict[str, str]) -> None:
        """Test that a month before the current one is rejected."""
        assert _error_types(customer_form, expiryDate="03/24") == {"expiryDate": "card_expired"}

    def test_current_month_is_valid(self, customer_form: dict[str, str]) -> None:
        """Test the boundary month is accepted."""
        assert _validate(customer_form, expiryDate="06/24").expiry_date == "06/24"

    def test_future_year_is_valid(self, customer_form: dict[str, str]) -> None:
        """Test that a later year is accepted even with a smaller month."""
        assert _validate(customer_form, expiryDate="01/25").expiry_date == "01/25"

    def test_past_year_is_expired(self, customer_form: dict[str, str]) -> None:
        """Test that an earlier year is rejected."""
        assert _error_types(customer_form, expiryDate="12/23") == {"expiryDate": "card_expired"}

    @pytest.mark.parametrize("value", ["13/25", "00/25", "6/25", "06-25", "0625", "06/2025", "12/30\n"])
    def test_rejects_bad_format(self, customer_form: dict[str, str], value: str) -> None:
        """Test that values not exactly in MM/YY format are rejected."""
        assert _error_types(customer_form, expiryDate=value) == {"expiryDate": "string_pattern_mismatch"}

    def test_defaults_to_current_date(self, customer_form: dict[str, str]) -> None:
        """Test that without a reference date the current month is used."""
        form = CheckoutForm.model_validate({**customer_form, "expiryDate": "12/99"})
        assert form.expiry_date == "12/99"


class TestContactFields:
    """Tests for name, email, phone and address rules."""

    def test_phone_normalized_to_digits(self, customer_form: dict[str, str]) -> None:
        """Test that phone formatting characters are stripped."""
        assert _validate(customer_form, phone="(123) 456-7890").phone == "1234567890"

    @pytest.mark.parametrize("value", ["123456789", "12345678901", "phone", "١٢٣٤٥٦٧٨٩٠"])
    def test_phone_requires_ten_ascii_digits(self, customer_form: dict[str, str], value: str) -> None:
        """Test that phones without exactly 10 ASCII digits are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            _validate(customer_form, phone=value)

        assert exc_info.value.fields == {"phone": "Phone number must be 10 digits"}

    def test_email_lowercased(self, customer_form: dict[str, str]) -> None:
        """Test that email is normalized to lowercase."""
        assert _validate(customer_form, email="Jane.Doe@Example.COM").email == "jane.doe@example.com"

    @pytest.mark.parametrize("value", ["not-an-email", "jane@", "@example.com"])
    def test_email_rejects_bad_syntax(self, customer_form: dict[str, str], value: str) -> None:
        """Test that malformed emails are rejected."""
        assert list(_error_types(customer_form, email=value)) == ["email"]

    def test_email_rejects_long_address(self, customer_form: dict[str, str]) -> None:
        """Test that emails over 100 characters are rejected."""
        long_email = "a" * 60 + "@" + "b" * 45 + ".com"

        with pytest.raises(ValidationError) as exc_info:
            _validate(customer_form, email=long_email)

        assert exc_info.value.fields == {"email": "Email must be less than 100 characters"}

    @pytest.mark.parametrize("value", ["Jane O'Neil", "Mary-Jane Watson", "Al"])
    def test_name_accepts_letters_spaces_hyphens_apostrophes(self, customer_form: dict[str, str], value: str) -> None:
        """Test valid names pass unchanged."""
        assert _validate(customer_form, fullName=value).full_name == value

    @pytest.mark.parametrize("value", ["J", "Jane2", "Jane_Doe", "a" * 101, "Jane\n"])
    def test_name_rejects_invalid(self, customer_form: dict[str, str], value: str) -> None:
        """Test short, long and non-letter names are rejected."""
        assert list(_error_types(customer_form, fullName=value)) == ["fullName"]

    def test_address_length_bounds(self, customer_form: dict[str, str]) -> None:
        """Test the 5 to 200 character address range."""
        assert _validate(customer_form, address="1 A St").address == "1 A St"
        assert _error_types(customer_form, address="1 A") == {"address": "string_too_short"}
        assert _error_types(customer_form, address="x" * 201) == {"address": "string_too_long"}


class TestLocationFields:
    """Tests for city, state and zip code rules."""

    def test_city_rejects_digits(self, customer_form: dict[str, str]) -> None:
        """Test that cities only allow name characters."""
        assert _validate(customer_form, city="Winston-Salem").city == "Winston-Salem"
        assert list(_error_types(customer_form, city="District 9")) == ["city"]

    def test_state_uppercased(self, customer_form: dict[str, str]) -> None:
        """Test that state codes are normalized to uppercase."""
        assert _validate(customer_form, state="ny").state == "NY"

    @pytest.mark.parametrize("value", ["N", "NYC", "N1", "  ", "NY\n"])
    def test_state_rejects_invalid(self, customer_form: dict[str, str], value: str) -> None:
        """Test that anything but two letters is rejected."""
        assert list(_error_types(customer_form, state=value)) == ["state"]

    @pytest.mark.parametrize("value", ["12345", "12345-6789"])
    def test_zip_accepts_valid(self, customer_form: dict[str, str], value: str) -> None:
        """Test 5-digit and ZIP+4 codes are accepted."""
        assert _validate(customer_form, zipCode=value).zip_code == value

    @pytest.mark.parametrize("value", ["1234", "123456", "12345-678", "abcde", "02110\n", "٠٢١١٠"])
    def test_zip_rejects_invalid(self, customer_form: dict[str, str], value: str) -> None:
        """Test malformed zip codes, including trailing newlines and non-ASCII digits."""
        assert _error_types(customer_form, zipCode=value) == {"zipCode": "string_pattern_mismatch"}

    @pytest.mark.parametrize("value", ["123", "1234"])
    def test_cvv_accepts_three_or_four_digits(self, customer_form: dict[str, str], value: str) -> None:
        """Test valid CVV lengths."""
        assert _validate(customer_form, cvv=value).cvv == value

    @pytest.mark.parametrize("value", ["12", "12345", "12a", "123\n", "١٢٣"])
    def test_cvv_rejects_invalid(self, customer_form: dict[str, str], value: str) -> None:
        """Test invalid CVVs are rejected."""
        assert _error_types(customer_form, cvv=value) == {"cvv": "string_pattern_mismatch"}


class TestValidateCheckoutForm:
    """Tests for whole-form validation."""

    def test_returns_normalized_form(self, customer_form: dict[str, str]) -> None:
        """Test that every field comes back normalized."""
        form = validate_checkout_form(customer_form, today=JUNE_2024)

        assert form.email == "jane.oneil@example.com"
        assert form.phone == "1234567890"
        assert form.state == "CA"
        assert form.card_number == "4532015112830366"
        assert form.card_last4 == "0366"

    def test_customer_snapshot_excludes_payment_fields(self, customer_form: dict[str, str]) -> None:
        """Test that the snapshot carries no card number, expiry or CVV."""
        snapshot = validate_checkout_form(customer_form, today=JUNE_2024).to_customer_snapshot()

        assert set(snapshot) == {"fullName", "email", "phone", "address", "city", "state", "zipCode"}
        assert "4532015112830366" not in repr(snapshot)

    def test_repr_hides_payment_fields(self, customer_form: dict[str, str]) -> None:
        """Test that the form repr never shows card details."""
        form = validate_checkout_form(customer_form, today=JUNE_2024)

        assert "4532015112830366" not in repr(form)
        assert "12/99" not in repr(form)
        assert "cvv" not in repr(form)

    def test_reports_one_error_per_invalid_field(self, customer_form: dict[str, str]) -> None:
        """Test that all invalid fields are reported together."""
        customer_form.update(phone="123", cardNumber="4532015112830367", state="N")
        del customer_form["cvv"]

        with pytest.raises(ValidationError) as exc_info:
            validate_checkout_form(customer_form, today=JUNE_2024)

        fields = exc_info.value.fields
        assert set(fields) == {"phone", "cardNumber", "state", "cvv"}
        assert fields["cvv"] == "Field required"
        assert exc_info.value.status_code == 422

    def test_rejects_non_string_values(self, customer_form: dict[str, str]) -> None:
        """Test that non-string values are reported rather than coerced."""
        assert _error_types(customer_form, zipCode=94103) == {"zipCode": "string_type"}

    def test_form_is_immutable(self, customer_form: dict[str, str]) -> None:
        """Test that a validated form cannot be changed afterwards."""
        form = validate_checkout_form(customer_form, today=JUNE_2024)

        with pytest.raises(PydanticValidationError):
            form.card_number = "0000000000000000"


class TestFormatters:
    """Tests for display formatters."""

    def test_mask_card_number(self) -> None:
        """Test masking keeps only the last 4 digits."""
        assert mask_card_number("4532015112830366") == "**** **** **** 0366"

    def test_mask_accepts_last_four(self) -> None:
        """Test masking a stored last-4 value."""
        assert mask_card_number("0366") == "**** **** **** 0366"

    def test_format_card_number(self) -> None:
        """Test grouping card digits in fours."""
        assert format_card_number("4532015112830366") == "4532 0151 1283 0366"
        assert format_card_number("1234") == "1234"

    def test_format_phone_number(self) -> None:
        """Test formatting ten digits as a US phone number."""
        assert format_phone_number("1234567890") == "(123) 456-7890"
        assert format_phone_number("12345") == "12345"
