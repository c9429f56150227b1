"""
presenter/orm/grade.py
Per-criterion scores, written feedback, and the audit trail of score corrections.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint

from presenter.orm.base import Base, TimestampMixin, isoformat


class Grade(TimestampMixin, Base):
    """Score for one (presentation, criterion) pair. Upsert target."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    presentation_id = Column(
        Integer,
        ForeignKey("presentations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    criterion_id = Column(
        Integer,
        ForeignKey("rubric_criteria.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    score = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("presentation_id", "criterion_id", name="uq_grade_presentation_criterion"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "presentation_id": self.presentation_id,
            "criterion_id": self.criterion_id,
            "score": self.score,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class Feedback(TimestampMixin, Base):
    """Public feedback and private notes. At most one row per presentation."""
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    presentation_id = Column(
        Integer,
        ForeignKey("presentations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )
    public_feedback = Column(Text, nullable=False, default="")
    private_notes = Column(Text, nullable=False, default="")

    def to_dict(self):
        return {
            "id": self.id,
            "presentation_id": self.presentation_id,
            "public_feedback": self.public_feedback or "",
            "private_notes": self.private_notes or "",
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class GradeAudit(Base):
    """Append-only record of a score being overwritten. Never updated."""
    __tablename__ = "grade_audit"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    grade_id = Column(
        Integer,
        ForeignKey("grades.id", ondelete="CASCADE"),
        nullable=False
    )
    old_score = Column(Integer, nullable=False)
    new_score = Column(Integer, nullable=False)
    edited_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_grade_audit_grade", "grade_id", "edited_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "grade_id": self.grade_id,
            "old_score": self.old_score,
            "new_score": self.new_score,
            "edited_at": isoformat(self.edited_at),
        }
