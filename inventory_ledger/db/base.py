"""
Module: inventory_ledger.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the type annotation map for consistent column types, the UTC timestamp type
    and the TrackedBase mixin for bookkeeping timestamps.
Architecture position: Ledger > DB.  This is the lowest-level import target
    within the ledger.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Integer surrogate keys: ``int`` maps to BigInteger (Integer on SQLite so
      that the rowid alias autoincrements).
    - UTC timestamps: every ``datetime`` column round-trips as an aware UTC
      value regardless of backend.  Naive values are taken to be UTC.
    - Bookkeeping timestamps: TrackedBase provides created_at and updated_at.

Failure modes:
    - IntegrityError on duplicate primary keys (never produced by the ledger,
      which always lets the database assign ids).

Audit relevance:
    updated_at is bookkeeping, not ledger data; it is explicitly allowed to
    change even on terminal movements (see db/immutability.py).
"""

from datetime import datetime, timezone
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# SQLite only autoincrements an INTEGER PRIMARY KEY.
BigIntegerId = BigInteger().with_variant(Integer, "sqlite")


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored and loaded as UTC.

    Contract:
        PostgreSQL stores TIMESTAMPTZ; SQLite stores the UTC wall-clock
        components.  Either way Python sees an aware UTC datetime.

    Guarantees:
        - process_bind_param: naive -> UTC-tagged; aware -> converted to UTC.
        - process_result_value: naive -> UTC-tagged; aware -> converted to UTC.
        - cache_ok=True enables SQLAlchemy statement caching.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Contract:
        Every ORM model in the ledger inherits from Base (or TrackedBase) and
        declares its own primary key.

    Guarantees:
        - datetime maps to UTCDateTime -- always timezone-aware UTC.
        - int maps to BigInteger (Integer on SQLite).
        - str maps to an unbounded String unless a length is given.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        int: BigIntegerId,
        str: String(),
    }


class TrackedBase(Base):
    """
    Abstract base with bookkeeping timestamps.

    Guarantees:
        - created_at defaults to server NOW() on INSERT unless the caller
          supplies a clock value.
        - updated_at is set on INSERT and refreshed on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
