"""
Validation Gate
===============

Shape validation and normalization of everything the registration API
accepts. Runs before any backing-store call; a payload either validates
completely into a typed model or is rejected with field-keyed messages.

Version: 0.1.0
"""

from __future__ import annotations

import re
from typing import Any, TypeVar

import pydantic
from pydantic import StrictBool, field_validator
from pydantic_core import PydanticCustomError

from shared.models.common import ApiModel
from services.registration.errors import ValidationError
from services.registration.models import WarrantyPlan


MANAGEMENT_ID_PREFIX = "URC"
MANAGEMENT_ID_DIGITS = 7
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 11
POSTAL_CODE_DIGITS = 7
PHONE_SUFFIX_LENGTH = 4

_MANAGEMENT_ID_RE = re.compile(
    rf"^{MANAGEMENT_ID_PREFIX}([0-9]{{{MANAGEMENT_ID_DIGITS}}})$",
    re.IGNORECASE | re.ASCII,
)
_NON_DIGIT_RE = re.compile(r"[^0-9]")

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


# =============================================================================
# String helpers
# =============================================================================


def digits_only(value: str) -> str:
    """Strip everything except ASCII digits."""
    return _NON_DIGIT_RE.sub("", value or "")


def phone_suffix(phone: str, length: int = PHONE_SUFFIX_LENGTH) -> str:
    """Last `length` digits of a phone number, ignoring separators."""
    return digits_only(phone)[-length:]


def normalize_management_id(value: str) -> str:
    """
    Normalize a management id to `URC` + 7 digits.

    Raises:
        ValueError: if the value is not a management id
    """
    match = _MANAGEMENT_ID_RE.match((value or "").strip())
    if not match:
        raise ValueError(value)
    return f"{MANAGEMENT_ID_PREFIX}{match.group(1)}"


def format_postal_code(value: str) -> str:
    """Format a Japanese postal code as `123-4567`."""
    digits = digits_only(value)[:POSTAL_CODE_DIGITS]
    if len(digits) <= 3:
        return digits
    return f"{digits[:3]}-{digits[3:]}"


def format_phone_number(value: str) -> str:
    """
    Hyphenate a phone number.

    10 digits are treated as a landline (03-1234-5678), longer numbers
    as mobile (090-1234-5678), cut at 11 digits.
    """
    digits = digits_only(value)
    if len(digits) <= 3:
        return digits
    if len(digits) <= 7:
        return f"{digits[:3]}-{digits[3:]}"
    if len(digits) <= 10:
        return f"{digits[:2]}-{digits[2:6]}-{digits[6:]}"
    return f"{digits[:3]}-{digits[3:7]}-{digits[7:MAX_PHONE_DIGITS]}"


def format_name_with_space(name: str) -> str:
    """Insert a space between family and given name when none was typed."""
    trimmed = name.strip()
    if len(trimmed) <= 2 or " " in trimmed or "　" in trimmed:
        return trimmed
    return f"{trimmed[:2]} {trimmed[2:]}"


# =============================================================================
# Field validators
# =============================================================================


def _management_id(value: str) -> str:
    try:
        return normalize_management_id(value)
    except ValueError:
        raise PydanticCustomError(
            "management_id_format",
            "Management ID must be URC followed by 7 digits.",
        ) from None


def _phone(value: str) -> str:
    if not MIN_PHONE_DIGITS <= len(digits_only(value)) <= MAX_PHONE_DIGITS:
        raise PydanticCustomError(
            "phone_format",
            "Please enter a phone number of 10 or 11 digits.",
        )
    return value


def _required_text(value: str, label: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise PydanticCustomError("required_text", "Please enter your {label}.", {"label": label})
    return stripped


# =============================================================================
# Request payloads
# =============================================================================


class CheckManagementIdRequest(ApiModel):
    """Management id check before the full form is shown."""

    management_id: str
    phone: str | None = None

    @field_validator("management_id")
    @classmethod
    def check_management_id(cls, v: str) -> str:
        return _management_id(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return digits_only(_phone(v))


class RegistrationRequest(ApiModel):
    """Full registration form."""

    management_id: str
    full_name: str
    furigana: str
    postal_code: str
    address: str
    phone: str
    warranty_plan: WarrantyPlan
    review_pledge: StrictBool
    terms_agreed: StrictBool

    @field_validator("management_id")
    @classmethod
    def check_management_id(cls, v: str) -> str:
        return _management_id(v)

    @field_validator("full_name")
    @classmethod
    def check_full_name(cls, v: str) -> str:
        return format_name_with_space(_required_text(v, "full name"))

    @field_validator("furigana")
    @classmethod
    def check_furigana(cls, v: str) -> str:
        return _required_text(v, "furigana")

    @field_validator("address")
    @classmethod
    def check_address(cls, v: str) -> str:
        return _required_text(v, "address")

    @field_validator("postal_code")
    @classmethod
    def check_postal_code(cls, v: str) -> str:
        if len(digits_only(v)) != POSTAL_CODE_DIGITS:
            raise PydanticCustomError(
                "postal_code_format",
                "Please enter a 7-digit postal code.",
            )
        return format_postal_code(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        return format_phone_number(_phone(v))

    @field_validator("terms_agreed")
    @classmethod
    def check_terms_agreed(cls, v: bool) -> bool:
        if v is not True:
            raise PydanticCustomError(
                "terms_not_agreed",
                "Please agree to the warranty terms.",
            )
        return v


class StatusRequest(ApiModel):
    """Warranty status lookup."""

    management_id: str
    phone_last4: str

    @field_validator("management_id")
    @classmethod
    def check_management_id(cls, v: str) -> str:
        return _management_id(v)

    @field_validator("phone_last4")
    @classmethod
    def check_phone_last4(cls, v: str) -> str:
        if not re.fullmatch(r"[0-9]{4}", v.strip()):
            raise PydanticCustomError(
                "phone_last4_format",
                "Please enter the last 4 digits of your phone number.",
            )
        return v.strip()


# =============================================================================
# Gate
# =============================================================================


def issues_from(exc: pydantic.ValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors into field name -> messages."""
    issues: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        field = str(error["loc"][0]) if error["loc"] else "body"
        issues.setdefault(field, []).append(error["msg"])
    return issues


def validate_payload(model: type[ModelT], data: Any) -> ModelT:
    """
    Validate raw JSON into a typed, normalized payload.

    Raises:
        ValidationError: with every failing field, never a partial payload
    """
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(issues_from(exc)) from exc
