"""Checkout form validation rules.

``CheckoutForm`` carries every field rule as pydantic constraints and
validators, so one validation pass reports one error per invalid field and a
submission never partially succeeds. The expiry check reads ``today`` from the
validation context when one is given.
"""

import re
from datetime import date
from typing import Any, Mapping

from pydantic import ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from storefront.api.middleware.error_handler import ValidationError
from storefront.schemas.common import CamelModel

# ASCII only; other Unicode digits are rejected, not normalized
NON_DIGITS = re.compile(r"[^0-9]")

NAME_PATTERN = r"^[A-Za-z '-]+$"
STATE_PATTERN = r"^[A-Za-z]{2}$"
ZIP_PATTERN = r"^[0-9]{5}(-[0-9]{4})?$"
EXPIRY_PATTERN = r"^(0[1-9]|1[0-2])/[0-9]{2}$"
CVV_PATTERN = r"^[0-9]{3,4}$"

CARD_NUMBER_LENGTH = 16
PHONE_LENGTH = 10
EMAIL_MAX_LENGTH = 100


def digits_only(value: str) -> str:
    """Strip every character that is not an ASCII digit."""
    return NON_DIGITS.sub("", value)


def luhn_is_valid(digits: str) -> bool:
    """Run the Luhn checksum over a string of digits.

    Every second digit from the rightmost is doubled (minus 9 when the result
    exceeds 9); the number is valid when the total is a multiple of 10.
    """
    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


class CheckoutForm(CamelModel):
    """Checkout form, validated and normalized.

    Holds the full card number and CVV only for the lifetime of a request;
    ``to_customer_snapshot`` and ``card_last4`` are what travel downstream.
    """

    # Rust regex: $ only matches at the very end of the input
    model_config = ConfigDict(frozen=True, regex_engine="rust-regex")

    full_name: str = Field(min_length=2, max_length=100, pattern=NAME_PATTERN, description="Full name")
    email: EmailStr = Field(description="Email address, stored lowercased")
    phone: str = Field(description="Phone number, any formatting; stored as 10 digits")
    address: str = Field(min_length=5, max_length=200, description="Street address")
    city: str = Field(min_length=2, max_length=50, pattern=NAME_PATTERN, description="City")
    state: str = Field(pattern=STATE_PATTERN, description="Two-letter state code, stored uppercased")
    zip_code: str = Field(pattern=ZIP_PATTERN, description="ZIP or ZIP+4")
    card_number: str = Field(repr=False, description="16-digit card number")
    expiry_date: str = Field(pattern=EXPIRY_PATTERN, repr=False, description="Card expiry as MM/YY")
    cvv: str = Field(pattern=CVV_PATTERN, repr=False, description="Card security code")

    @field_validator("email", mode="before")
    @classmethod
    def check_email_length(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value) > EMAIL_MAX_LENGTH:
            raise PydanticCustomError(
                "string_too_long",
                "Email must be less than {max_length} characters",
                {"max_length": EMAIL_MAX_LENGTH},
            )
        return value

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("phone", "card_number", mode="before")
    @classmethod
    def strip_formatting(cls, value: Any) -> Any:
        if isinstance(value, str):
            return digits_only(value)
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        if len(value) != PHONE_LENGTH:
            raise PydanticCustomError("phone_number", "Phone number must be 10 digits")
        return value

    @field_validator("state")
    @classmethod
    def uppercase_state(cls, value: str) -> str:
        return value.upper()

    @field_validator("card_number")
    @classmethod
    def check_card_number(cls, value: str) -> str:
        if len(value) != CARD_NUMBER_LENGTH or not luhn_is_valid(value):
            raise PydanticCustomError("card_number", "Invalid card number")
        return value

    @field_validator("expiry_date")
    @classmethod
    def check_not_expired(cls, value: str, info: ValidationInfo) -> str:
        """Reject cards that expired before the current month.

        ``today`` comes from the validation context, defaulting to ``date.today()``.
        """
        today = (info.context or {}).get("today") or date.today()
        month, year = value.split("/")
        if (int(year), int(month)) < (today.year % 100, today.month):
            raise PydanticCustomError("card_expired", "Card has expired")
        return value

    @property
    def card_last4(self) -> str:
        return self.card_number[-4:]

    def to_customer_snapshot(self) -> dict[str, str]:
        """Billing/shipping fields only, keyed the way orders store them."""
        return self.model_dump(
            by_alias=True,
            include={"full_name", "email", "phone", "address", "city", "state", "zip_code"},
        )


def validate_checkout_form(data: Mapping[str, Any], today: date | None = None) -> CheckoutForm:
    """Validate every checkout field and return the normalized form.

    Args:
        data: Raw form values keyed by wire field name (``fullName``, ``zipCode``...).
        today: Reference date for the expiry check.

    Returns:
        CheckoutForm: Normalized values.

    Raises:
        ValidationError: One detail entry per invalid or missing field.
    """
    try:
        return CheckoutForm.model_validate(data, context={"today": today})
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "Checkout form is invalid") from e


def format_phone_number(phone: str) -> str:
    """Format 10 digits as ``(123) 456-7890``; anything else is returned as-is."""
    digits = digits_only(phone)
    if len(digits) == PHONE_LENGTH:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone


def format_card_number(card_number: str) -> str:
    """Group 16 digits in fours; anything else is returned as-is."""
    digits = digits_only(card_number)
    if len(digits) == CARD_NUMBER_LENGTH:
        return " ".join(digits[i:i + 4] for i in range(0, CARD_NUMBER_LENGTH, 4))
    return card_number


def mask_card_number(card_number: str) -> str:
    """Display form ``**** **** **** 1234``, also accepting just the last 4 digits."""
    digits = digits_only(card_number)
    if len(digits) >= 4:
        return f"**** **** **** {digits[-4:]}"
    return card_number
