"""
Setup-phase API schemas: sessions, teams, rubric and rubric templates.

Request fields are camelCase on the wire; models accept either spelling.
"""
from typing import List, Optional

from pydantic import Field, field_validator

from presenter.schemas.base import CamelModel
from presenter.state_machines.presentation import TeamStatus


class SessionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    presentation_duration: int = Field(..., alias="presentationDuration", gt=0)
    qa_duration: int = Field(..., alias="qaDuration", gt=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class SessionUpdate(CamelModel):
    session_id: int = Field(..., alias="sessionId")
    rubric_locked: bool = Field(..., alias="rubricLocked")


class TeamInput(CamelModel):
    name: str = Field(..., max_length=200)
    members: List[str] = Field(default_factory=list)


class TeamsCreate(CamelModel):
    session_id: int = Field(..., alias="sessionId")
    teams: List[TeamInput] = Field(default_factory=list)
    # Pasted "Team, Member1, Member2" lines, parsed server side
    bulk: Optional[str] = None


class TeamUpdate(CamelModel):
    team_id: int = Field(..., alias="teamId")
    status: TeamStatus


class CriterionInput(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = ""
    max_score: int = Field(..., alias="maxScore", ge=0)
    weight: Optional[int] = Field(default=100, ge=0)

    def to_service(self) -> dict:
        return {
            "name": self.name.strip(),
            "description": self.description or "",
            "max_score": self.max_score,
            "weight": self.weight if self.weight is not None else 100,
        }


class RubricCreate(CamelModel):
    session_id: int = Field(..., alias="sessionId")
    criteria: List[CriterionInput] = Field(..., min_length=1)


class TemplateCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    criteria: List[CriterionInput] = Field(..., min_length=1)
