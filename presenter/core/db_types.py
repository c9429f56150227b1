"""
Dialect-aware database types.
Provides PostgreSQL JSONB when available,
falls back to generic JSON for SQLite.
"""
import enum
from typing import Type

from sqlalchemy import JSON, Enum as SQLEnum, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator

from presenter.state_machines.presentation import TimerSnapshot


class UniversalJSON(TypeDecorator):
    """
    Uses JSONB for PostgreSQL.
    Uses JSON for SQLite and others.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class TimerSnapshotType(TypeDecorator):
    """
    Stores a TimerSnapshot as JSON text.
    Unreadable stored values load as None instead of failing the row.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, dict):
            value = TimerSnapshot.model_validate(value)
        return value.to_json()

    def process_result_value(self, value, dialect):
        return TimerSnapshot.from_json(value)


def value_enum(enum_cls: Type[enum.Enum], name: str) -> SQLEnum:
    """String-backed enum column that stores member values ("not_started"), not names."""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )
