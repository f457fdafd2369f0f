"""Base schema configuration for all Pydantic models.

Usage:
    - DomainModel: Mutable-by-copy records held in the store (products,
      orders, preferences)
    - EventRecord: Append-only records that are never mutated
      (price observations, interactions)
    - ValueObject: Derived values that are never persisted on their own

Timestamps use ``UtcDatetime``: naive input is read as UTC and aware input
is converted to UTC.

Python code uses snake_case fields and enum members. Documents written to
the store use camelCase keys and enum values as strings; that encoding is
produced by ``model_dump(mode="json")`` and read back by ``model_validate``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def coerce_now(now: datetime | None = None) -> datetime:
    """``now`` normalised to UTC, or the current UTC time when omitted."""
    return datetime.now(UTC) if now is None else ensure_utc(now)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class _BaseSchema(BaseModel):
    """Private base schema with common configuration.

    Do not use directly - inherit from one of the public subclasses.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,  # Accept both snake_case and camelCase
        serialize_by_alias=True,
        use_enum_values=False,  # Enums stay tagged variants in Python
        validate_default=True,
        extra="ignore",  # Older documents may carry retired fields
    )


class DomainModel(_BaseSchema):
    """Base class for stored entities updated by producing new copies."""


class EventRecord(_BaseSchema):
    """Base class for append-only records."""

    model_config = ConfigDict(frozen=True)


class ValueObject(_BaseSchema):
    """Base class for derived values."""

    model_config = ConfigDict(frozen=True, extra="forbid")
