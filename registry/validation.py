"""Field validation rules for person registrations.

Every function here is pure: it either returns the normalized value
ready for storage or raises :class:`~registry.errors.FieldValidationError`
naming the field and the rule that failed.
"""

import re
import string
from typing import Any

from .errors import FieldValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
AGE_PATTERN = re.compile(r"^[+-]?[0-9]+$")
PASSWORD_SYMBOLS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
MIN_ADDRESS_LENGTH = 10
PHONE_DIGITS = 10
MIN_AGE, MAX_AGE = 1, 150

FIELD_LABELS = {
    "name": "Name",
    "email": "Email",
    "phone": "Phone number",
    "age": "Age",
    "password": "Password",
    "permanent_address": "Permanent address",
    "communication_address": "Communication address",
}


def _required_text(field: str, value: Any) -> str:
    if value is None:
        raise FieldValidationError(
            field, "required", f"{FIELD_LABELS[field]} is required and cannot be empty"
        )
    text = str(value).strip()
    if not text:
        raise FieldValidationError(
            field, "required", f"{FIELD_LABELS[field]} is required and cannot be empty"
        )
    return text


def validate_name(value: Any) -> str:
    name = _required_text("name", value)
    if len(name) < MIN_NAME_LENGTH:
        raise FieldValidationError(
            "name", "min_length", "Name must be at least 2 characters long"
        )
    return name


def validate_email(value: Any) -> str:
    """Check the ``local@domain.tld`` shape and lowercase the address."""
    email = _required_text("email", value)
    if not EMAIL_PATTERN.match(email):
        raise FieldValidationError(
            "email",
            "format",
            "Please enter a valid email address (e.g., example@domain.com)",
        )
    return email.lower()


def normalize_phone(value: Any) -> str:
    """Strip every non-digit character from ``value``."""
    if value is None:
        return ""
    return re.sub(r"[^0-9]", "", str(value))


def validate_phone(value: Any) -> str:
    _required_text("phone", value)
    phone = normalize_phone(value)
    if len(phone) != PHONE_DIGITS:
        raise FieldValidationError(
            "phone", "digits", "Phone number must be exactly 10 digits"
        )
    return phone


def validate_age(value: Any) -> int:
    """Parse ``value`` as a whole number between 1 and 150."""
    message = f"Please enter a valid age between {MIN_AGE} and {MAX_AGE}"
    if isinstance(value, bool):
        raise FieldValidationError("age", "integer", message)
    if isinstance(value, int):
        age = value
    else:
        text = _required_text("age", value)
        if not AGE_PATTERN.match(text):
            raise FieldValidationError("age", "integer", message)
        try:
            age = int(text)
        except ValueError:
            raise FieldValidationError("age", "integer", message)
    if not MIN_AGE <= age <= MAX_AGE:
        raise FieldValidationError("age", "range", message)
    return age


def validate_password(value: Any) -> str:
    """
    Require letters, digits and symbols in a password of 6+ characters.

    The password is returned unchanged: authentication compares it
    byte for byte.
    """
    if value is None or not str(value).strip():
        raise FieldValidationError(
            "password", "required", "Password is required and cannot be empty"
        )
    password = str(value)
    message = (
        "Password must contain letters, numbers, special characters "
        "and be at least 6 characters long"
    )
    if len(password) < MIN_PASSWORD_LENGTH:
        raise FieldValidationError("password", "min_length", message)
    if not any(c.isascii() and c.isalpha() for c in password):
        raise FieldValidationError("password", "letter", message)
    if not any(c in string.digits for c in password):
        raise FieldValidationError("password", "digit", message)
    if not any(c in PASSWORD_SYMBOLS for c in password):
        raise FieldValidationError("password", "symbol", message)
    return password


def validate_address(value: Any, field: str = "permanent_address") -> str:
    address = _required_text(field, value)
    if len(address) < MIN_ADDRESS_LENGTH:
        raise FieldValidationError(
            field,
            "min_length",
            f"{FIELD_LABELS[field]} must be at least 10 characters long",
        )
    return address
