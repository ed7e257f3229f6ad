"""Database models for the person registry.

This module defines SQLAlchemy ORM models used by the application.
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base


class Person(Base):
    """
    SQLAlchemy model representing a registered person.

    The phone number is the lookup key for authentication but is not
    declared unique, so duplicate phones are structurally allowed.
    """

    __tablename__ = "personal_details"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False, index=True)
    age = Column(Integer, nullable=False)
    permanent_address = Column(String, nullable=False)
    password = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    #: Communication addresses removed by the database on delete
    addresses = relationship(
        "CommunicationAddress",
        back_populates="person",
        passive_deletes=True,
    )


class CommunicationAddress(Base):
    """
    SQLAlchemy model representing a person's communication address.

    At most one row exists per person; this is maintained by the write
    functions in :mod:`registry.crud`, not by a uniqueness constraint.
    """

    __tablename__ = "communication_addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)

    #: Identifier of the owning person
    person_id = Column(
        Integer,
        ForeignKey("personal_details.id", ondelete="CASCADE"),
        nullable=False,
    )
    communication_address = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    #: Reference to the owning Person object
    person = relationship("Person", back_populates="addresses")
