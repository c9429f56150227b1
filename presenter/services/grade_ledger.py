"""
Grade Ledger

Durable per-criterion scores and feedback for a presentation, with an
append-only audit trail of score corrections.

One submit_grades call is one transaction: every grade, audit and feedback
row commits together or none does.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.config.settings import settings
from presenter.exceptions import PersistenceError, ValidationError
from presenter.orm.grade import Feedback, Grade, GradeAudit
from presenter.orm.presentation import Presentation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreEntry:
    criterion_id: int
    score: int


@dataclass
class LedgerResult:
    created: int = 0
    updated: int = 0
    audited: int = 0


async def _upsert_grade(
    db: AsyncSession,
    presentation_id: int,
    entry: ScoreEntry,
    now: datetime,
    result: LedgerResult,
) -> None:
    existing = (await db.execute(
        select(Grade).where(
            Grade.presentation_id == presentation_id,
            Grade.criterion_id == entry.criterion_id,
        )
    )).scalar_one_or_none()

    if existing is None:
        db.add(Grade(
            presentation_id=presentation_id,
            criterion_id=entry.criterion_id,
            score=entry.score,
        ))
        result.created += 1
        return

    if existing.score != entry.score or settings.AUDIT_UNCHANGED_SCORES:
        # Audit row is flushed before the grade changes
        db.add(GradeAudit(
            grade_id=existing.id,
            old_score=existing.score,
            new_score=entry.score,
            edited_at=now,
        ))
        await db.flush()
        result.audited += 1

    existing.score = entry.score
    existing.updated_at = now
    result.updated += 1


async def _upsert_feedback(
    db: AsyncSession,
    presentation_id: int,
    public_feedback: Optional[str],
    private_notes: Optional[str],
) -> None:
    feedback = (await db.execute(
        select(Feedback).where(Feedback.presentation_id == presentation_id)
    )).scalar_one_or_none()

    if feedback is None:
        db.add(Feedback(
            presentation_id=presentation_id,
            public_feedback=public_feedback or "",
            private_notes=private_notes or "",
        ))
    else:
        feedback.public_feedback = public_feedback or ""
        feedback.private_notes = private_notes or ""


async def submit_grades(
    db: AsyncSession,
    presentation_id: int,
    scores: Iterable[ScoreEntry],
    public_feedback: Optional[str] = "",
    private_notes: Optional[str] = "",
    commit: bool = True,
) -> LedgerResult:
    """
    Record scores and feedback for a presentation.

    Scores must already be validated against the rubric by the caller.
    Does not change the presentation status.

    Args:
        db: Database session
        presentation_id: Presentation being graded
        scores: (criterion, score) entries
        public_feedback: Feedback shown to the team
        private_notes: Instructor-only notes
        commit: Commit at the end. Callers that extend the transaction pass False.

    Raises:
        ValidationError: Unknown presentation
        PersistenceError: The transaction could not be committed
    """
    presentation = await db.get(Presentation, presentation_id)
    if presentation is None:
        raise ValidationError(f"Presentation {presentation_id} does not exist")

    result = LedgerResult()
    now = datetime.utcnow()
    try:
        for entry in scores:
            await _upsert_grade(db, presentation_id, entry, now, result)
        await _upsert_feedback(db, presentation_id, public_feedback, private_notes)
        if commit:
            await db.commit()
        else:
            await db.flush()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Grade submission failed for presentation {presentation_id}: {str(e)}")
        raise PersistenceError("Failed to submit grades") from e

    logger.info(
        f"Grades recorded for presentation {presentation_id}: "
        f"{result.created} new, {result.updated} updated, {result.audited} audited"
    )
    return result


async def get_grades(
    db: AsyncSession,
    presentation_id: int,
) -> Tuple[List[Grade], Optional[Feedback]]:
    """Read-only projection of a presentation's grades and feedback."""
    grades = (await db.execute(
        select(Grade)
        .where(Grade.presentation_id == presentation_id)
        .order_by(Grade.criterion_id)
    )).scalars().all()
    feedback = (await db.execute(
        select(Feedback).where(Feedback.presentation_id == presentation_id)
    )).scalar_one_or_none()
    return list(grades), feedback


async def get_grade_history(db: AsyncSession, presentation_id: int) -> List[dict]:
    """Every score correction for a presentation, oldest first."""
    rows = (await db.execute(
        select(GradeAudit, Grade.criterion_id)
        .join(Grade, Grade.id == GradeAudit.grade_id)
        .where(Grade.presentation_id == presentation_id)
        .order_by(GradeAudit.edited_at, GradeAudit.id)
    )).all()
    history = []
    for audit, criterion_id in rows:
        entry = audit.to_dict()
        entry["criterion_id"] = criterion_id
        history.append(entry)
    return history
