"""
presenter/orm/team.py
A group of students presenting together. Status mirrors the presentation lifecycle.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from presenter.core.db_types import UniversalJSON, value_enum
from presenter.orm.base import Base, isoformat
from presenter.state_machines.presentation import TeamStatus


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    session_id = Column(
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)
    members = Column(UniversalJSON, nullable=False, default=list)  # ordered member names
    status = Column(value_enum(TeamStatus, "team_status"), nullable=False, default=TeamStatus.PENDING, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("session_id", "name", name="uq_team_session_name"),
    )

    @property
    def members_list(self):
        return list(self.members or [])

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "name": self.name,
            "members": self.members_list,
            "status": self.status.value if self.status else None,
            "created_at": isoformat(self.created_at),
        }
