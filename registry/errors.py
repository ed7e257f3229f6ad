"""Exceptions raised by the registry persistence layer."""


class RegistryError(Exception):
    """Base class for every error raised by the registry."""


class FieldValidationError(RegistryError):
    """
    Input field failed a validation rule.

    Attributes:
        field (str): Name of the offending field.
        rule (str): Identifier of the violated rule (e.g. ``min_length``).
        message (str): Human readable description for re-prompting.
    """

    def __init__(self, field: str, rule: str, message: str):
        super().__init__(message)
        self.field = field
        self.rule = rule
        self.message = message


class PersonNotFoundError(RegistryError):
    """No person record exists with the requested id."""

    def __init__(self, person_id: int):
        super().__init__(f"No record found with id {person_id}")
        self.person_id = person_id


class StorageError(RegistryError):
    """The storage engine failed or rejected an operation."""


class StorageNotInitializedError(StorageError):
    """An operation was attempted before the store was opened."""

    def __init__(self, message: str = "Database not initialized"):
        super().__init__(message)
