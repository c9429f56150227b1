"""
Export Service

Flattens a session's completed presentations into one CSV row per team,
one column per rubric criterion.
"""
import csv
import io
import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.orm.grade import Feedback, Grade
from presenter.orm.grading_session import GradingSession
from presenter.orm.presentation import Presentation
from presenter.orm.team import Team
from presenter.services.session_orchestrator import get_criteria
from presenter.state_machines.presentation import PresentationStatus

logger = logging.getLogger(__name__)

MEMBER_SEPARATOR = "; "


def export_filename(session_id: int) -> str:
    return f"grades-{session_id}.csv"


async def build_export_rows(db: AsyncSession, session: GradingSession) -> List[Dict]:
    """
    One entry per completed presentation, ordered by team name.

    Each entry holds team_name, members, scores (aligned with the rubric order),
    total, public_feedback and private_notes. A criterion without a grade
    scores 0.
    """
    criteria = await get_criteria(db, session.id)

    rows = (await db.execute(
        select(Presentation, Team)
        .join(Team, Team.id == Presentation.team_id)
        .where(
            Presentation.session_id == session.id,
            Presentation.status == PresentationStatus.COMPLETED,
        )
        .order_by(Team.name, Team.id)
    )).all()

    presentation_ids = [presentation.id for presentation, _ in rows]
    scores_by_presentation: Dict[int, Dict[int, int]] = {pid: {} for pid in presentation_ids}
    feedback_by_presentation: Dict[int, Feedback] = {}

    if presentation_ids:
        grades = (await db.execute(
            select(Grade).where(Grade.presentation_id.in_(presentation_ids))
        )).scalars().all()
        for grade in grades:
            scores_by_presentation[grade.presentation_id][grade.criterion_id] = grade.score

        feedback_rows = (await db.execute(
            select(Feedback).where(Feedback.presentation_id.in_(presentation_ids))
        )).scalars().all()
        feedback_by_presentation = {f.presentation_id: f for f in feedback_rows}

    export = []
    for presentation, team in rows:
        score_map = scores_by_presentation[presentation.id]
        scores = [score_map.get(c.id, 0) for c in criteria]
        feedback = feedback_by_presentation.get(presentation.id)
        export.append({
            "team_name": team.name,
            "members": MEMBER_SEPARATOR.join(team.members_list),
            "scores": scores,
            "total": sum(scores),
            "public_feedback": feedback.public_feedback if feedback else "",
            "private_notes": feedback.private_notes if feedback else "",
        })
    return export


async def build_export_csv(db: AsyncSession, session: GradingSession) -> str:
    """Render the export as CSV text. Text cells are always quoted, numbers never."""
    criteria = await get_criteria(db, session.id)
    rows = await build_export_rows(db, session)

    buffer = io.StringIO()
    header_writer = csv.writer(buffer, lineterminator="\n")
    header_writer.writerow(
        ["Team Name", "Members"]
        + [c.name for c in criteria]
        + ["Total Score", "Public Feedback", "Private Notes"]
    )

    row_writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for row in rows:
        row_writer.writerow(
            [row["team_name"], row["members"]]
            + row["scores"]
            + [row["total"], row["public_feedback"], row["private_notes"]]
        )

    logger.info(f"Exported {len(rows)} completed presentations for session {session.id}")
    return buffer.getvalue()
