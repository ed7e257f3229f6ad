from datetime import datetime
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from . import validation


class PersonIn(BaseModel):
    """Raw person fields as submitted by the form (all optional)."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[Union[str, int]] = None
    age: Optional[Union[int, str]] = None
    permanent_address: Optional[str] = None
    password: Optional[str] = None


class AddressIn(BaseModel):
    """Raw communication address as submitted by the form."""

    communication_address: Optional[str] = None


class RegistrationIn(BaseModel):
    """Request body for creating or editing a person."""

    person: PersonIn
    address: AddressIn


class PersonCreate(BaseModel):
    """Validated and normalized person fields ready for storage."""

    name: str
    email: str
    phone: str
    age: int
    permanent_address: str
    password: str


class AddressCreate(BaseModel):
    """Validated communication address ready for storage."""

    communication_address: str


class PersonView(BaseModel):
    """Public view of a person record; never carries the password."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    age: int
    permanent_address: str


class PersonListing(PersonView):
    """Person joined with its communication address for the listing screen."""

    communication_address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    """Phone and password typed on the login form."""

    phone: Optional[Union[str, int]] = None
    password: Optional[str] = None


class PersonCreated(BaseModel):
    id: int


class AffectedRows(BaseModel):
    affected: int


class ClearedRows(BaseModel):
    deleted: int


def _as_mapping(data: Union[BaseModel, Mapping[str, Any], None]) -> Mapping[str, Any]:
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        return data.model_dump()
    return data


def validate_person(data: Union[BaseModel, Mapping[str, Any]]) -> PersonCreate:
    """
    Validate raw person fields in form order and normalize them.

    Args:
        data (PersonIn | Mapping): Raw person fields.

    Raises:
        FieldValidationError: For the first field that breaks a rule.

    Returns:
        PersonCreate: Normalized person fields.
    """
    raw = _as_mapping(data)
    return PersonCreate(
        name=validation.validate_name(raw.get("name")),
        email=validation.validate_email(raw.get("email")),
        phone=validation.validate_phone(raw.get("phone")),
        age=validation.validate_age(raw.get("age")),
        password=validation.validate_password(raw.get("password")),
        permanent_address=validation.validate_address(
            raw.get("permanent_address"), "permanent_address"
        ),
    )


def validate_address(data: Union[BaseModel, Mapping[str, Any]]) -> AddressCreate:
    """Validate and trim a raw communication address."""
    raw = _as_mapping(data)
    return AddressCreate(
        communication_address=validation.validate_address(
            raw.get("communication_address"), "communication_address"
        )
    )


def validate_submission(
    person: Union[BaseModel, Mapping[str, Any]],
    address: Union[BaseModel, Mapping[str, Any]],
) -> Tuple[PersonCreate, AddressCreate]:
    """
    Gate a create or edit submission.

    Person fields are checked first, then the communication address, so
    the reported error is always the first failing field of the form.
    """
    return validate_person(person), validate_address(address)
