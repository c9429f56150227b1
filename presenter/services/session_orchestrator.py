"""
Session Orchestrator

Random team selection, rubric lock enforcement, and the grade-then-complete
sequence that spans the grade ledger and the presentation state machine.
"""
import logging
import random
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.exceptions import (
    NoPendingTeamsError,
    PersistenceError,
    RubricLockedError,
    ValidationError,
)
from presenter.orm.grading_session import GradingSession
from presenter.orm.presentation import Presentation
from presenter.orm.rubric import RubricCriterion
from presenter.orm.team import Team
from presenter.services import grade_ledger
from presenter.services.grade_ledger import LedgerResult, ScoreEntry
from presenter.services.presentation_service import apply_presentation_event
from presenter.state_machines.presentation import PresentationEvent, PresentationStatus, TeamStatus

logger = logging.getLogger(__name__)

_rng = random.SystemRandom()


async def pick_next_team(
    db: AsyncSession,
    session_id: int,
    rng: Optional[random.Random] = None,
) -> Tuple[Team, Presentation]:
    """
    Pick a pending team uniformly at random.

    Creates a not_started presentation when the team has none (after a defer).
    Locking the rubric is the caller's job, done before this call.

    Raises:
        NoPendingTeamsError: No team in the session is pending
    """
    pending = (await db.execute(
        select(Team)
        .where(Team.session_id == session_id, Team.status == TeamStatus.PENDING)
        .order_by(Team.id)
    )).scalars().all()

    if not pending:
        raise NoPendingTeamsError(session_id)

    team = (rng or _rng).choice(pending)

    presentation = (await db.execute(
        select(Presentation).where(Presentation.team_id == team.id)
    )).scalar_one_or_none()

    if presentation is None:
        presentation = Presentation(
            session_id=session_id,
            team_id=team.id,
            status=PresentationStatus.NOT_STARTED,
        )
        db.add(presentation)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Creating presentation for team {team.id} failed: {str(e)}")
            raise PersistenceError("Failed to create presentation") from e
        await db.refresh(presentation)
        logger.info(f"Created fresh presentation {presentation.id} for team {team.id}")

    logger.info(f"Picked team {team.id} ({team.name}) for session {session_id}")
    return team, presentation


async def lock_rubric(db: AsyncSession, session: GradingSession) -> GradingSession:
    """One-way flag flip. No-op if already locked."""
    if session.rubric_locked:
        return session
    session.rubric_locked = True
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError("Failed to lock rubric") from e
    logger.info(f"Rubric locked for session {session.id}")
    return session


async def set_rubric_locked(db: AsyncSession, session: GradingSession, locked: bool) -> GradingSession:
    """Lock requests are idempotent; unlocking a locked rubric is refused."""
    if locked:
        return await lock_rubric(db, session)
    if session.rubric_locked:
        raise RubricLockedError(session.id)
    return session


async def add_criteria(
    db: AsyncSession,
    session: GradingSession,
    criteria: Iterable[Dict],
) -> List[RubricCriterion]:
    """
    Append criteria to a session rubric in one transaction.

    Each item: name, description (optional), max_score, weight (default 100).

    Raises:
        RubricLockedError: The rubric is locked
    """
    if session.rubric_locked:
        raise RubricLockedError(session.id)

    next_index = (await db.execute(
        select(func.count(RubricCriterion.id)).where(RubricCriterion.session_id == session.id)
    )).scalar() or 0

    added = []
    for offset, item in enumerate(criteria):
        criterion = RubricCriterion(
            session_id=session.id,
            name=item["name"],
            description=item.get("description") or "",
            max_score=item["max_score"],
            weight=100 if item.get("weight") is None else item["weight"],
            order_index=next_index + offset,
        )
        db.add(criterion)
        added.append(criterion)

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Adding criteria to session {session.id} failed: {str(e)}")
        raise PersistenceError("Failed to add criteria") from e

    for criterion in added:
        await db.refresh(criterion)
    logger.info(f"Added {len(added)} criteria to session {session.id}")
    return added


async def get_criteria(db: AsyncSession, session_id: int) -> List[RubricCriterion]:
    result = await db.execute(
        select(RubricCriterion)
        .where(RubricCriterion.session_id == session_id)
        .order_by(RubricCriterion.order_index, RubricCriterion.id)
    )
    return list(result.scalars().all())


async def validate_scores(
    db: AsyncSession,
    presentation: Presentation,
    scores: List[ScoreEntry],
) -> None:
    """
    Server-side check before the ledger runs: every criterion belongs to the
    presentation's session and every score is within 0..max_score.
    """
    criteria = {c.id: c for c in await get_criteria(db, presentation.session_id)}
    seen = set()
    for entry in scores:
        criterion = criteria.get(entry.criterion_id)
        if criterion is None:
            raise ValidationError(
                f"Criterion {entry.criterion_id} is not part of this session's rubric",
                {"criterionId": entry.criterion_id},
            )
        if entry.criterion_id in seen:
            raise ValidationError(
                f"Criterion {entry.criterion_id} was scored more than once",
                {"criterionId": entry.criterion_id},
            )
        seen.add(entry.criterion_id)
        if entry.score < 0 or entry.score > criterion.max_score:
            raise ValidationError(
                f'Score for "{criterion.name}" must be between 0 and {criterion.max_score}',
                {"criterionId": entry.criterion_id, "score": entry.score, "maxScore": criterion.max_score},
            )


async def submit_and_complete(
    db: AsyncSession,
    presentation: Presentation,
    scores: List[ScoreEntry],
    public_feedback: Optional[str] = "",
    private_notes: Optional[str] = "",
    complete: bool = False,
) -> LedgerResult:
    """
    Validate and record grades; optionally mark the presentation completed.

    The ledger transaction commits before the completion transition is applied.
    """
    await validate_scores(db, presentation, scores)
    result = await grade_ledger.submit_grades(
        db,
        presentation.id,
        scores,
        public_feedback=public_feedback,
        private_notes=private_notes,
    )
    if complete:
        await apply_presentation_event(db, presentation, PresentationEvent.COMPLETE)
    return result
