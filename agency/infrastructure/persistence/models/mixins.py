"""Column mixins shared by the engine tables."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from agency.shared.utils.generators import generate_cuid


class CuidMixin:
    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class TimestampMixin:
    """created_at / updated_at, filled by the database (timestamptz)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
        )


class VersionedMixin:
    """Optimistic-lock counter.

    Never bumped by the ORM itself: repositories issue
    ``UPDATE ... SET version = version + 1 WHERE id = :id AND version = :expected``
    and treat zero affected rows as a lost race.
    """

    @declared_attr
    def version(cls) -> Mapped[int]:
        return mapped_column(Integer, default=1, nullable=False)


class EngineModel(CuidMixin, TimestampMixin):
    __abstract__ = True


class VersionedEngineModel(CuidMixin, TimestampMixin, VersionedMixin):
    """Rows updated by compare-and-swap: workflow instances and sequence assignments."""

    __abstract__ = True


def values_check(column: str, values: list[str], name: str) -> CheckConstraint:
    """CHECK (column IN (...)) for a str enum stored as plain text."""
    quoted = ", ".join("'{}'".format(v.replace("'", "''")) for v in values)
    return CheckConstraint(f"{column} IN ({quoted})", name=name)
