"""
presenter/services/permission_guards.py
Ownership lookups shared by every session-scoped operation.

A resource that exists but belongs to another instructor is reported as
not found, so ids of other users' sessions are never confirmed.
"""
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.exceptions import NotFoundError
from presenter.orm.grading_session import GradingSession
from presenter.orm.presentation import Presentation
from presenter.orm.team import Team


async def get_owned_session(db: AsyncSession, session_id: int, user_id: int) -> GradingSession:
    result = await db.execute(
        select(GradingSession).where(
            GradingSession.id == session_id,
            GradingSession.user_id == user_id,
        )
    )
    session = result.scalar_one_or_none()
    if session is None:
        raise NotFoundError("Session", session_id)
    return session


async def get_owned_team(db: AsyncSession, team_id: int, user_id: int) -> Team:
    result = await db.execute(
        select(Team)
        .join(GradingSession, GradingSession.id == Team.session_id)
        .where(Team.id == team_id, GradingSession.user_id == user_id)
    )
    team = result.scalar_one_or_none()
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


async def get_owned_presentation(
    db: AsyncSession,
    presentation_id: int,
    user_id: int,
) -> Tuple[Presentation, GradingSession]:
    result = await db.execute(
        select(Presentation, GradingSession)
        .join(GradingSession, GradingSession.id == Presentation.session_id)
        .where(Presentation.id == presentation_id, GradingSession.user_id == user_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Presentation", presentation_id)
    return row[0], row[1]
