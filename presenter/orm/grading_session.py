"""
presenter/orm/grading_session.py
One grading event (e.g. one class period) owned by an instructor.

The "current" session of a user is their most recently created one.
rubric_locked only ever moves from False to True in normal flow.
"""
from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String

from presenter.orm.base import Base, TimestampMixin, isoformat


class GradingSession(TimestampMixin, Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)

    # Durations in minutes
    presentation_duration = Column(Integer, nullable=False)
    qa_duration = Column(Integer, nullable=False)

    rubric_locked = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_sessions_user_created", "user_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "presentation_duration": self.presentation_duration,
            "qa_duration": self.qa_duration,
            "rubric_locked": bool(self.rubric_locked),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
