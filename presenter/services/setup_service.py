"""
Setup Service

Everything an instructor does before presentations begin: sessions, team
import, rubric templates.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.exceptions import DuplicateTeamNameError, PersistenceError, ValidationError
from presenter.orm.grading_session import GradingSession
from presenter.orm.presentation import Presentation
from presenter.orm.rubric import RubricTemplate
from presenter.orm.team import Team
from presenter.orm.user import User
from presenter.services.session_orchestrator import get_criteria
from presenter.state_machines.presentation import PresentationStatus, TeamStatus

logger = logging.getLogger(__name__)


# ================= SESSIONS =================

async def create_session(
    db: AsyncSession,
    user: User,
    name: str,
    presentation_duration: int,
    qa_duration: int,
) -> GradingSession:
    if not name or not name.strip():
        raise ValidationError("Name, presentation duration, and QA duration are required")
    if presentation_duration <= 0 or qa_duration <= 0:
        raise ValidationError("Durations must be positive whole minutes")

    session = GradingSession(
        user_id=user.id,
        name=name.strip(),
        presentation_duration=presentation_duration,
        qa_duration=qa_duration,
        rubric_locked=False,
    )
    db.add(session)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError("Failed to create session") from e
    await db.refresh(session)
    logger.info(f"Session {session.id} created for user {user.id}")
    return session


async def get_current_session(db: AsyncSession, user: User) -> Optional[GradingSession]:
    """The user's most recently created session."""
    result = await db.execute(
        select(GradingSession)
        .where(GradingSession.user_id == user.id)
        .order_by(GradingSession.created_at.desc(), GradingSession.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def load_session_state(db: AsyncSession, session: GradingSession) -> Dict:
    """Session with its teams, criteria and presentations, as the dashboard consumes it."""
    teams = (await db.execute(
        select(Team).where(Team.session_id == session.id).order_by(Team.created_at, Team.id)
    )).scalars().all()
    criteria = await get_criteria(db, session.id)
    presentations = (await db.execute(
        select(Presentation).where(Presentation.session_id == session.id).order_by(Presentation.id)
    )).scalars().all()
    return {
        "session": session.to_dict(),
        "teams": [t.to_dict() for t in teams],
        "criteria": [c.to_dict() for c in criteria],
        "presentations": [p.to_dict() for p in presentations],
    }


async def delete_session(db: AsyncSession, session: GradingSession) -> None:
    """Delete a session; teams, criteria, presentations and grades cascade."""
    session_id = session.id
    await db.delete(session)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError("Failed to delete session") from e
    logger.info(f"Session {session_id} deleted")


# ================= TEAMS =================

def parse_bulk_teams(text: str) -> List[Dict]:
    """
    Parse pasted team lines of the form `Team Name, Member1, Member2, ...`.
    Lines without a name or without members are skipped.
    """
    teams = []
    for line in (text or "").splitlines():
        parts = [part.strip() for part in line.split(",")]
        name, members = parts[0], [m for m in parts[1:] if m]
        if name and members:
            teams.append({"name": name, "members": members})
    return teams


async def _add_team(db: AsyncSession, session_id: int, name: str, members: List[str]) -> Team:
    existing = (await db.execute(
        select(Team.id).where(Team.session_id == session_id, Team.name == name)
    )).scalar_one_or_none()
    if existing is not None:
        raise DuplicateTeamNameError(name)

    team = Team(session_id=session_id, name=name, members=members, status=TeamStatus.PENDING)
    db.add(team)
    await db.flush()
    db.add(Presentation(
        session_id=session_id,
        team_id=team.id,
        status=PresentationStatus.NOT_STARTED,
    ))
    await db.commit()
    await db.refresh(team)
    return team


async def add_teams(
    db: AsyncSession,
    session: GradingSession,
    teams: Iterable[Dict],
) -> Tuple[List[Team], List[str]]:
    """
    Add teams one by one. Each team and its presentation commit together;
    a failing team is reported in the error list and the rest still go in.
    """
    added: List[Team] = []
    errors: List[str] = []
    rolled_back = False
    for item in teams:
        name = (item.get("name") or "").strip()
        members = [m.strip() for m in item.get("members") or [] if m and m.strip()]
        if not name:
            errors.append("Team name is required")
            continue
        try:
            added.append(await _add_team(db, session.id, name, members))
        except DuplicateTeamNameError as e:
            errors.append(e.message)
        except IntegrityError:
            await db.rollback()
            rolled_back = True
            errors.append(f'Team "{name}" already exists')
        except SQLAlchemyError as e:
            await db.rollback()
            rolled_back = True
            logger.error(f'Adding team "{name}" to session {session.id} failed: {str(e)}')
            errors.append(f'Failed to add team "{name}"')

    if rolled_back:
        # A rollback expires every instance in the session, committed ones included
        for team in added:
            await db.refresh(team)

    logger.info(f"Session {session.id}: {len(added)} teams added, {len(errors)} rejected")
    return added, errors


async def update_team_status(db: AsyncSession, team: Team, status: TeamStatus) -> Team:
    team.status = status
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError("Failed to update team") from e
    return team


# ================= RUBRIC TEMPLATES =================

async def save_template(db: AsyncSession, user: User, name: str, criteria: List[Dict]) -> RubricTemplate:
    if not name or not name.strip() or not criteria:
        raise ValidationError("Name and criteria are required")
    template = RubricTemplate(user_id=user.id, name=name.strip(), criteria=criteria)
    db.add(template)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError("Failed to save template") from e
    await db.refresh(template)
    return template


async def list_templates(db: AsyncSession, user: User) -> List[RubricTemplate]:
    result = await db.execute(
        select(RubricTemplate)
        .where(RubricTemplate.user_id == user.id)
        .order_by(RubricTemplate.created_at.desc(), RubricTemplate.id.desc())
    )
    return list(result.scalars().all())
