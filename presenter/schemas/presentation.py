"""
Presentation and grading API schemas
"""
from enum import Enum
from typing import List, Optional

from pydantic import Field

from presenter.schemas.base import CamelModel
from presenter.services.grade_ledger import ScoreEntry
from presenter.state_machines.presentation import PresentationEvent, PresentationStatus, TimerSnapshot


class PickTeamRequest(CamelModel):
    session_id: int = Field(..., alias="sessionId")


class PresentationUpdate(CamelModel):
    """
    Partial update. Omitted fields are left untouched; an explicit
    `"timerState": null` clears the stored timer.
    """
    presentation_id: int = Field(..., alias="presentationId")
    team_id: Optional[int] = Field(default=None, alias="teamId")
    status: Optional[PresentationStatus] = None
    presentation_time_elapsed: Optional[int] = Field(default=None, alias="presentationTimeElapsed", ge=0)
    qa_time_elapsed: Optional[int] = Field(default=None, alias="qaTimeElapsed", ge=0)
    timer_state: Optional[TimerSnapshot] = Field(default=None, alias="timerState")

    @property
    def clears_timer_state(self) -> bool:
        return "timer_state" in self.model_fields_set and self.timer_state is None


class PresentationRef(CamelModel):
    presentation_id: int = Field(..., alias="presentationId")


class TimerAction(CamelModel):
    """Optional clock reading sent with stop actions."""
    elapsed_time: Optional[int] = Field(default=None, alias="elapsedTime", ge=0)


class ScoreInput(CamelModel):
    criterion_id: int = Field(..., alias="criterionId")
    score: int

    def to_entry(self) -> ScoreEntry:
        return ScoreEntry(criterion_id=self.criterion_id, score=self.score)


class GradesSubmit(CamelModel):
    presentation_id: int = Field(..., alias="presentationId")
    grades: List[ScoreInput] = Field(default_factory=list)
    public_feedback: Optional[str] = Field(default="", alias="publicFeedback")
    private_notes: Optional[str] = Field(default="", alias="privateNotes")
    complete: bool = False


class PresentationAction(str, Enum):
    """URL slugs of the instructor timer controls."""
    START = "start"
    SWITCH_TO_QA = "switch-to-qa"
    EMERGENCY_STOP = "emergency-stop"
    RESUME = "resume"
    START_FRESH = "start-fresh"
    STOP_AND_GRADE = "stop-and-grade"


ACTION_EVENTS = {
    PresentationAction.START: PresentationEvent.START,
    PresentationAction.SWITCH_TO_QA: PresentationEvent.SWITCH_TO_QA,
    PresentationAction.EMERGENCY_STOP: PresentationEvent.EMERGENCY_STOP,
    PresentationAction.RESUME: PresentationEvent.RESUME,
    PresentationAction.START_FRESH: PresentationEvent.START_FRESH,
    PresentationAction.STOP_AND_GRADE: PresentationEvent.STOP_AND_GRADE,
}
