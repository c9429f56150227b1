"""
presenter/orm/base.py
Declarative base for all ORM models
"""
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def isoformat(value: datetime):
    return value.isoformat() if value else None


class TimestampMixin:
    """created_at / updated_at pair shared by mutable rows."""

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        comment="Timestamp when record was created"
    )

    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
        comment="Timestamp when record was last updated"
    )
