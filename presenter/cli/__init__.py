"""
Presentation Grader CLI

Usage:
    python -m presenter.cli <command> [options]

Commands:
    init-db     Create missing tables
    db-check    Show connectivity, tables and user count
    export      Write a session's grade CSV to a file or stdout

Environment:
    DATABASE_URL    SQLAlchemy async URL (default: sqlite+aiosqlite:///./presenter.db)
    LOG_LEVEL       DEBUG|INFO|WARNING|ERROR
"""
import argparse
import logging
from typing import Optional

from presenter import __version__
from presenter.cli.commands import DbCommand, ExportCommand


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="presenter",
        description="Presentation Grader CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s init-db
  %(prog)s db-check
  %(prog)s export --session-id 3 --output grades-3.csv
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create missing tables")
    subparsers.add_parser("db-check", help="Check database connectivity")

    export_parser = subparsers.add_parser("export", help="Export completed presentations as CSV")
    export_parser.add_argument("--session-id", "-s", type=int, required=True, help="Session ID")
    export_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 1

    setup_logging(parsed.log_level)

    if parsed.command in ("init-db", "db-check"):
        return DbCommand().execute(parsed)
    if parsed.command == "export":
        return ExportCommand().execute(parsed)

    print(f"Error: Unknown command {parsed.command}")
    return 1
