"""
presenter/orm/presentation.py
The timed presentation of one team within a session.

Only services/presentation_service.py mutates status and timer columns;
transition rules live in state_machines/presentation.py.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer

from presenter.core.db_types import TimerSnapshotType, value_enum
from presenter.orm.base import Base, TimestampMixin, isoformat
from presenter.state_machines.presentation import PresentationStatus


class Presentation(TimestampMixin, Base):
    __tablename__ = "presentations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    session_id = Column(
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    # At most one presentation per team
    team_id = Column(
        Integer,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)

    # Seconds
    presentation_time_elapsed = Column(Integer, nullable=False, default=0)
    qa_time_elapsed = Column(Integer, nullable=False, default=0)

    timer_state = Column(TimerSnapshotType, nullable=True)
    status = Column(
        value_enum(PresentationStatus, "presentation_status"),
        nullable=False,
        default=PresentationStatus.NOT_STARTED,
        index=True
    )

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "team_id": self.team_id,
            "started_at": isoformat(self.started_at),
            "ended_at": isoformat(self.ended_at),
            "presentation_time_elapsed": self.presentation_time_elapsed or 0,
            "qa_time_elapsed": self.qa_time_elapsed or 0,
            "timer_state": self.timer_state.to_wire() if self.timer_state else None,
            "status": self.status.value if self.status else None,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
