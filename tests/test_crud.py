import pytest
from sqlalchemy import delete, func, select

from registry import crud, models, schemas
from registry.errors import PersonNotFoundError, StorageError


def count_addresses(storage, person_id=None):
    stmt = select(func.count(models.CommunicationAddress.id))
    if person_id is not None:
        stmt = stmt.where(models.CommunicationAddress.person_id == person_id)
    with storage.session() as db:
        return db.scalar(stmt)


def test_create_then_list_returns_normalized_record(storage, make_person):
    person_id = make_person()

    records = crud.list_persons(storage)
    assert len(records) == 1
    record = records[0]
    assert record.id == person_id
    assert record.name == "Ann"
    assert record.email == "ann@x.com"
    assert record.phone == "9876543210"
    assert record.age == 30
    assert record.permanent_address == "123 Long Street Name"
    assert record.communication_address == "456 Other Street Name"
    assert record.created_at is not None
    assert not hasattr(record, "password")


def test_list_is_newest_first(storage, make_person):
    first = make_person(name="First")
    second = make_person(name="Second")

    ids = [record.id for record in crud.list_persons(storage)]
    assert ids == [second, first]


def test_create_rolls_back_when_address_insert_fails(storage, person_data):
    person = schemas.validate_person(person_data)
    broken = schemas.AddressCreate.model_construct(communication_address=None)

    with pytest.raises(StorageError):
        crud.create_person(storage, person, broken)

    assert crud.list_persons(storage) == []
    assert count_addresses(storage) == 0


def test_update_rolls_back_when_address_write_fails(storage, make_person, person_data):
    person_id = make_person()
    person = schemas.validate_person({**person_data, "name": "Changed"})
    broken = schemas.AddressCreate.model_construct(communication_address=None)

    with pytest.raises(StorageError):
        crud.update_person(storage, person_id, person, broken)

    [record] = crud.list_persons(storage)
    assert record.name == "Ann"
    assert record.communication_address == "456 Other Street Name"


def test_update_replaces_values_without_second_address(storage, make_person):
    person_id = make_person()
    person, address = schemas.validate_submission(
        {
            "name": "Bob",
            "email": "BOB@Example.org",
            "phone": "111-222-3333",
            "age": 41,
            "permanent_address": "9 Completely New Road",
            "password": "Xyz789#",
        },
        {"communication_address": "77 Another Long Lane"},
    )

    assert crud.update_person(storage, person_id, person, address) == 1
    assert crud.update_person(storage, person_id, person, address) == 1

    [record] = crud.list_persons(storage)
    assert record.name == "Bob"
    assert record.email == "bob@example.org"
    assert record.phone == "1112223333"
    assert record.age == 41
    assert record.communication_address == "77 Another Long Lane"
    assert count_addresses(storage, person_id) == 1


def test_update_inserts_missing_address(storage, make_person, person_data):
    person_id = make_person()
    with storage.transaction() as db:
        db.execute(delete(models.CommunicationAddress))

    [record] = crud.list_persons(storage)
    assert record.communication_address is None

    person, address = schemas.validate_submission(
        person_data, {"communication_address": "New Communication Street"}
    )
    crud.update_person(storage, person_id, person, address)

    [record] = crud.list_persons(storage)
    assert record.communication_address == "New Communication Street"
    assert count_addresses(storage, person_id) == 1


def test_update_unknown_id_changes_nothing(storage, make_person, person_data):
    make_person()
    person, address = schemas.validate_submission(
        {**person_data, "name": "Changed"},
        {"communication_address": "Changed Address Street"},
    )

    with pytest.raises(PersonNotFoundError):
        crud.update_person(storage, 999, person, address)

    [record] = crud.list_persons(storage)
    assert record.name == "Ann"
    assert count_addresses(storage) == 1


def test_delete_cascades_to_address(storage, make_person, person_data, address_data):
    person_id = make_person()
    other_id = make_person(phone="5555555555")

    assert crud.delete_person(storage, person_id) == 1

    assert [record.id for record in crud.list_persons(storage)] == [other_id]
    assert count_addresses(storage, person_id) == 0
    assert count_addresses(storage) == 1

    person, address = schemas.validate_submission(person_data, address_data)
    with pytest.raises(PersonNotFoundError):
        crud.update_person(storage, person_id, person, address)
    with pytest.raises(PersonNotFoundError):
        crud.delete_person(storage, person_id)


def test_address_requires_existing_person(storage):
    with pytest.raises(StorageError):
        with storage.transaction() as db:
            db.add(
                models.CommunicationAddress(
                    person_id=12345, communication_address="Orphan Address Street"
                )
            )

    assert count_addresses(storage) == 0


def test_clear_all_removes_everything(storage, make_person):
    make_person()
    make_person(phone="5555555555")

    assert crud.clear_all(storage) == 2
    assert crud.list_persons(storage) == []
    assert count_addresses(storage) == 0
