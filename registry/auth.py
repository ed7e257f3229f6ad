"""Credential lookup and the login route."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select

from . import models, schemas, validation
from .database import Storage, get_storage
from .errors import FieldValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def authenticate(
    storage: Storage, phone: str, password: str
) -> schemas.PersonView | None:
    """
    Find the person whose stored phone and password match exactly.

    Matching is case-sensitive and no normalization is applied, so the
    caller passes a digits-only phone. When several persons share the
    same credentials the one with the lowest id is returned.

    Args:
        storage (Storage): Initialized storage handle.
        phone (str): Ten digit phone number.
        password (str): Plaintext password.

    Returns:
        PersonView | None: Public fields of the person, or ``None`` when
        nothing matches.
    """
    stmt = (
        select(models.Person)
        .where(
            models.Person.phone == phone,
            models.Person.password == password,
        )
        .order_by(models.Person.id)
        .limit(1)
    )
    with storage.session() as db:
        person = db.execute(stmt).scalar_one_or_none()
        if person is None:
            logger.debug("No person matches the supplied credentials")
            return None
        return schemas.PersonView.model_validate(person)


@router.post("/login", response_model=schemas.PersonView)
def login(payload: schemas.LoginRequest, storage: Storage = Depends(get_storage)):
    """
    Check a phone and password typed on the login form.

    Raises:
        FieldValidationError: If the phone or password is missing, or the
            phone is not 10 digits.
        HTTPException: If no person matches the credentials.

    Returns:
        PersonView: Logged in person.
    """
    phone = validation.validate_phone(payload.phone)
    if not payload.password:
        raise FieldValidationError("password", "required", "Password is required")

    user = authenticate(storage, phone, payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid phone number or password",
        )
    logger.info("Person %s logged in", user.id)
    return user
