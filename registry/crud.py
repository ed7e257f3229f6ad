"""Write and read operations for person records.

This module contains every state-changing operation of the registry.
Each write runs inside one transaction spanning both tables, so a person
and its communication address are always stored, changed, or removed
together.
"""

import logging
from typing import List

from sqlalchemy import delete, func, select, update

from . import models, schemas
from .database import Storage
from .errors import PersonNotFoundError

logger = logging.getLogger(__name__)


def create_person(
    storage: Storage,
    person: schemas.PersonCreate,
    address: schemas.AddressCreate,
) -> int:
    """
    Insert a person together with its communication address.

    Args:
        storage (Storage): Initialized storage handle.
        person (PersonCreate): Validated person fields.
        address (AddressCreate): Validated communication address.

    Raises:
        StorageError: If either insert fails; nothing is persisted.

    Returns:
        int: Identifier assigned to the new person.
    """
    with storage.transaction() as db:
        record = models.Person(**person.model_dump())
        db.add(record)
        db.flush()
        person_id = record.id

        db.add(
            models.CommunicationAddress(
                person_id=person_id,
                communication_address=address.communication_address,
            )
        )
        db.flush()

    logger.info("Person %s created with communication address", person_id)
    return person_id


def update_person(
    storage: Storage,
    person_id: int,
    person: schemas.PersonCreate,
    address: schemas.AddressCreate,
) -> int:
    """
    Replace a person's fields and attach or update its address.

    The existing communication address is updated in place; one is
    inserted only when the person has none.

    Args:
        storage (Storage): Initialized storage handle.
        person_id (int): Person identifier.
        person (PersonCreate): Validated person fields.
        address (AddressCreate): Validated communication address.

    Raises:
        PersonNotFoundError: If no person has ``person_id``.
        StorageError: If a statement fails.

    Returns:
        int: Number of person rows updated.
    """
    with storage.transaction() as db:
        result = db.execute(
            update(models.Person)
            .where(models.Person.id == person_id)
            .values(**person.model_dump(), updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        affected = result.rowcount
        if affected == 0:
            raise PersonNotFoundError(person_id)

        address_id = db.scalar(
            select(models.CommunicationAddress.id)
            .where(models.CommunicationAddress.person_id == person_id)
            .order_by(models.CommunicationAddress.id)
            .limit(1)
        )
        if address_id is None:
            db.add(
                models.CommunicationAddress(
                    person_id=person_id,
                    communication_address=address.communication_address,
                )
            )
            db.flush()
        else:
            db.execute(
                update(models.CommunicationAddress)
                .where(models.CommunicationAddress.person_id == person_id)
                .values(
                    communication_address=address.communication_address,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )

    logger.info("Person %s updated", person_id)
    return affected


def delete_person(storage: Storage, person_id: int) -> int:
    """
    Delete a person; the database cascades to its address.

    Raises:
        PersonNotFoundError: If no person has ``person_id``.

    Returns:
        int: Number of person rows deleted.
    """
    with storage.transaction() as db:
        result = db.execute(
            delete(models.Person)
            .where(models.Person.id == person_id)
            .execution_options(synchronize_session=False)
        )
        affected = result.rowcount
        if affected == 0:
            raise PersonNotFoundError(person_id)

    logger.info("Person %s deleted", person_id)
    return affected


def clear_all(storage: Storage) -> int:
    """
    Remove every communication address and person.

    Returns:
        int: Number of person rows removed.
    """
    with storage.transaction() as db:
        db.execute(delete(models.CommunicationAddress))
        result = db.execute(delete(models.Person))
        removed = result.rowcount

    logger.info("All data cleared (%s persons)", removed)
    return removed


def list_persons(storage: Storage) -> List[schemas.PersonListing]:
    """
    Retrieve every person joined with its communication address.

    Persons without an address are still listed, with
    ``communication_address`` set to ``None``.

    Returns:
        list[PersonListing]: Records, newest first.
    """
    stmt = (
        select(models.Person, models.CommunicationAddress)
        .outerjoin(
            models.CommunicationAddress,
            models.CommunicationAddress.person_id == models.Person.id,
        )
        .order_by(models.Person.created_at.desc(), models.Person.id.desc())
    )

    with storage.session() as db:
        rows = db.execute(stmt).all()
        records = [
            schemas.PersonListing(
                id=person.id,
                name=person.name,
                email=person.email,
                phone=person.phone,
                age=person.age,
                permanent_address=person.permanent_address,
                communication_address=(
                    address.communication_address if address is not None else None
                ),
                created_at=person.created_at,
                updated_at=person.updated_at,
            )
            for person, address in rows
        ]

    logger.debug("Retrieved %s records", len(records))
    return records
