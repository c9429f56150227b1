from .base import Base

from .user import User
from .grading_session import GradingSession
from .team import Team
from .rubric import RubricCriterion, RubricTemplate
from .presentation import Presentation
from .grade import Grade, Feedback, GradeAudit

__all__ = [
    "Base",
    "User",
    "GradingSession",
    "Team",
    "RubricCriterion",
    "RubricTemplate",
    "Presentation",
    "Grade",
    "Feedback",
    "GradeAudit",
]
