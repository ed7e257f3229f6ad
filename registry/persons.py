"""Person management routes for the registry."""

from typing import List

from fastapi import APIRouter, Depends, status

from . import crud, schemas
from .database import Storage, get_storage

router = APIRouter(prefix="/persons", tags=["persons"])


@router.post(
    "/", response_model=schemas.PersonCreated, status_code=status.HTTP_201_CREATED
)
def create_person(
    payload: schemas.RegistrationIn,
    storage: Storage = Depends(get_storage),
):
    """
    Register a person together with its communication address.

    Args:
        payload (RegistrationIn): Raw person and address fields.
        storage (Storage): Storage handle.

    Returns:
        PersonCreated: Identifier of the new person.
    """
    person, address = schemas.validate_submission(payload.person, payload.address)
    person_id = crud.create_person(storage, person, address)
    return schemas.PersonCreated(id=person_id)


@router.get("/", response_model=List[schemas.PersonListing])
def list_persons(storage: Storage = Depends(get_storage)):
    """
    Retrieve every person with its communication address, newest first.

    Returns:
        list[PersonListing]: Listing rows.
    """
    return crud.list_persons(storage)


@router.put("/{person_id}", response_model=schemas.AffectedRows)
def update_person(
    person_id: int,
    payload: schemas.RegistrationIn,
    storage: Storage = Depends(get_storage),
):
    """
    Replace the fields of an existing person and its address.

    Args:
        person_id (int): Person identifier.
        payload (RegistrationIn): Raw person and address fields.
        storage (Storage): Storage handle.

    Returns:
        AffectedRows: Number of person rows updated.
    """
    person, address = schemas.validate_submission(payload.person, payload.address)
    affected = crud.update_person(storage, person_id, person, address)
    return schemas.AffectedRows(affected=affected)


@router.delete("/{person_id}", response_model=schemas.AffectedRows)
def remove_person(person_id: int, storage: Storage = Depends(get_storage)):
    """Delete a person and, through the cascade, its address."""
    return schemas.AffectedRows(affected=crud.delete_person(storage, person_id))


@router.delete("/", response_model=schemas.ClearedRows)
def clear_persons(storage: Storage = Depends(get_storage)):
    """Remove all stored persons and addresses."""
    return schemas.ClearedRows(deleted=crud.clear_all(storage))
