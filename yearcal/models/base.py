"""
Declarative base and shared columns for the account store.

Rows are never hard-deleted by the sign-in layer: unlinking an account sets
deleted_at, and every read in this service filters on SoftDeleteMixin.live().
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import ColumnElement, DateTime, MetaData, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Stable constraint names so Alembic batch migrations on SQLite can find them
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for all models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class TimestampMixin:
    """created_at / updated_at, maintained by the database and the ORM."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Row creation time (UTC)"
    )

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
        doc="Last update time (UTC); set when tokens are rewritten"
    )


class SoftDeleteMixin:
    """deleted_at marks an unlinked row."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        doc="Unlink time (UTC), NULL while the row is live"
    )

    @classmethod
    def live(cls) -> ColumnElement[bool]:
        """WHERE clause selecting rows that have not been unlinked."""
        return cls.deleted_at.is_(None)


class BaseModel(TimestampMixin, SoftDeleteMixin, Base):
    """Abstract base: UUID primary key plus timestamps and soft delete."""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="Row identifier"
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
