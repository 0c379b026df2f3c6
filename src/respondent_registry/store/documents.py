"""Persisted respondent documents and the conversions at the store boundary.

This is the one place where dates change representation: native
``datetime`` values (naive UTC) inside the store, canonical ISO 8601 strings
in ``RespondentRecord``.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from respondent_registry.models.respondent import RespondentRecord
from respondent_registry.utils.dates import date_to_datetime, to_iso
from respondent_registry.validation import RespondentInput

COLLECTION_NAME = "respondents"

# Fields a later schema variant adds; cleared when a base-schema update lands
EXTENDED_FIELDS = ("pob", "gender", "address", "semester", "medical_history")


class Base(DeclarativeBase):
    pass


class RespondentDocument(Base):
    """One respondent in the ``respondents`` collection."""

    __tablename__ = COLLECTION_NAME
    __table_args__ = (
        UniqueConstraint("phone", name="uq_respondents_phone"),
        Index("ix_respondents_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    dob: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320))
    height: Mapped[float] = mapped_column(Float, nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    pob: Mapped[Optional[str]] = mapped_column(String(200))
    gender: Mapped[Optional[str]] = mapped_column(String(10))
    address: Mapped[Optional[str]] = mapped_column(Text)
    semester: Mapped[Optional[int]] = mapped_column(Integer)
    medical_history: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<RespondentDocument(id={self.id}, created_at={self.created_at})>"


def to_storage_datetime(value: datetime) -> datetime:
    """Normalize a datetime to the store's native form (naive UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_document_fields(record: RespondentInput) -> dict[str, Any]:
    """Convert validated input to column values.

    Every mutable column is present so an update replaces all of them; fields
    the record's schema does not carry are set to None.
    """
    data = record.model_dump()
    fields: dict[str, Any] = {
        "name": data["name"],
        "dob": to_storage_datetime(date_to_datetime(data["dob"])),
        "phone": data["phone"],
        "email": data.get("email"),
        "height": data["height"],
        "weight": data["weight"],
    }
    for name in EXTENDED_FIELDS:
        value = data.get(name)
        # Gender arrives as an Enum member
        fields[name] = getattr(value, "value", value)
    return fields


def to_record(document: RespondentDocument) -> RespondentRecord:
    """Convert a stored document to the canonical wire record."""
    return RespondentRecord(
        id=document.id,
        name=document.name,
        dob=to_iso(document.dob),
        phone=document.phone,
        email=document.email,
        height=document.height,
        weight=document.weight,
        created_at=to_iso(document.created_at),
        pob=document.pob,
        gender=document.gender,
        address=document.address,
        semester=document.semester,
        medical_history=document.medical_history,
    )
