"""
CLI command handlers. Each handler owns its event loop run and returns an
exit code.
"""
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from presenter.database import AsyncSessionLocal, check_connection, close_db, init_db
from presenter.exceptions import PresenterException
from presenter.orm.grading_session import GradingSession
from presenter.services.export_service import build_export_csv

logger = logging.getLogger(__name__)


class DbCommand:
    """Schema bootstrap and connectivity check."""

    def execute(self, args) -> int:
        try:
            if args.command == "init-db":
                asyncio.run(self._init_db())
                print("Database initialized")
            else:
                status = asyncio.run(self._check())
                print(json.dumps(status, indent=2))
            return 0
        except SQLAlchemyError as e:
            print(f"Error: {e}")
            return 1

    async def _init_db(self) -> None:
        try:
            await init_db()
        finally:
            await close_db()

    async def _check(self) -> dict:
        try:
            async with AsyncSessionLocal() as db:
                return await check_connection(db)
        finally:
            await close_db()


class ExportCommand:
    """Offline equivalent of GET /api/export."""

    def execute(self, args) -> int:
        try:
            content = asyncio.run(self._export(args.session_id))
        except (PresenterException, SQLAlchemyError) as e:
            print(f"Error: {e}")
            return 1

        if content is None:
            print(f"Error: Session {args.session_id} not found")
            return 1

        self._write(content, args.output)
        return 0

    async def _export(self, session_id: int) -> Optional[str]:
        try:
            async with AsyncSessionLocal() as db:
                session = await db.get(GradingSession, session_id)
                if session is None:
                    return None
                return await build_export_csv(db, session)
        finally:
            await close_db()

    def _write(self, content: str, output: Optional[str]) -> None:
        if output:
            Path(output).write_text(content, encoding="utf-8")
            logger.info(f"Wrote {output}")
        else:
            sys.stdout.write(content)
