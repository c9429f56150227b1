"""
presenter/orm/rubric.py
Rubric criteria scored per presentation, and reusable rubric templates.
"""
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text

from presenter.core.db_types import UniversalJSON
from presenter.orm.base import Base, isoformat


class RubricCriterion(Base):
    """
    One scored dimension of a session's rubric.
    order_index fixes display and export order. Frozen once the session rubric is locked.
    """
    __tablename__ = "rubric_criteria"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    session_id = Column(
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    max_score = Column(Integer, nullable=False)
    weight = Column(Integer, nullable=False, default=100)  # percentage weight
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("max_score >= 0", name="ck_criterion_max_score"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "name": self.name,
            "description": self.description or "",
            "max_score": self.max_score,
            "weight": self.weight,
            "order_index": self.order_index,
            "created_at": isoformat(self.created_at),
        }


class RubricTemplate(Base):
    """Saved list of criteria an instructor can load into a new session."""
    __tablename__ = "rubric_templates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)
    criteria = Column(UniversalJSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "criteria": list(self.criteria or []),
            "created_at": isoformat(self.created_at),
        }
