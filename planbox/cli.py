"""Read-only terminal views over the planner backend.

    python -m planbox.cli board --mode day --date 2026-10-14
    python -m planbox.cli week
    python -m planbox.cli month --month 2026-10
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import date, datetime
from typing import List, Optional

from dotenv import load_dotenv

from planbox.engine.board import COLUMN_TITLES
from planbox.engine.date_window import ViewMode, window_for
from planbox.engine.timeline import TimelineGrid, bar_geometry
from planbox.errors import PlanboxError
from planbox.integrations.backend import BackendClient
from planbox.store.planner import PlannerStore
from planbox.util import calendar_math as cm

load_dotenv()

logger = logging.getLogger(__name__)


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` to the first day of that month."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid month {value!r}, expected YYYY-MM")


def parse_date_arg(value: str) -> date:
    try:
        return cm.parse_day(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def format_board(store: PlannerStore, mode: ViewMode, anchor: date) -> List[str]:
    window = window_for(mode, anchor)
    lines = [f"Board {window.start_key} .. {window.end_key}"]
    for column, tasks in store.board(window).items():
        lines.append(f"{COLUMN_TITLES[column]} ({len(tasks)})")
        for task in tasks:
            lines.append(f"  - {task.title} [{task.priority}]")
    return lines


def format_week(store: PlannerStore, anchor: date) -> List[str]:
    window = window_for(ViewMode.WEEK, anchor)
    lines = []
    for day in window.days():
        tasks = store.tasks_for_day(day)
        lines.append(f"{day.strftime('%a')} {day.isoformat()}")
        if not tasks:
            lines.append("  (nothing planned)")
        for task in tasks:
            minutes = store.segments.scheduled_minutes(task.id)
            suffix = f" ({minutes} min)" if minutes else ""
            lines.append(f"  - {task.title}{suffix}")
    return lines


def format_month(store: PlannerStore, month: date, width: int = 42) -> List[str]:
    """Project bars drawn on a character grid, one cell per day."""
    grid = TimelineGrid.for_month(month)
    lines = [f"{month.strftime('%B %Y')}  grid {grid.start.isoformat()} .. {grid.end.isoformat()} ({grid.total_days} days)"]
    projects = store.projects.for_month(month)
    if not projects:
        lines.append("  (no projects)")
    for project in projects:
        geometry = bar_geometry(grid, project.start_date, project.deadline)
        left = int(round(geometry.left_percent / 100 * width))
        bar = max(1, int(round(geometry.width_percent / 100 * width)))
        lines.append(
            f"  {project.name:<20.20} |{' ' * left}{'#' * bar}  {project.start_date.isoformat()} -> {project.deadline.isoformat()}"
        )
    return lines


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="planbox", description="Show planner views from the backend.")
    ap.add_argument(
        "--log-level",
        default=os.getenv("PLANBOX_LOG_LEVEL", "WARNING"),
        help="Logging level (default: env PLANBOX_LOG_LEVEL or WARNING)",
    )
    ap.add_argument("--api-url", default=None, help="Backend URL (default: env PLANBOX_API_URL)")
    sub = ap.add_subparsers(dest="command", required=True)

    board = sub.add_parser("board", help="Kanban columns for a day or week")
    board.add_argument("--mode", choices=[m.value for m in ViewMode], default=ViewMode.WEEK.value)
    board.add_argument("--date", type=parse_date_arg, default=None, help="Anchor day YYYY-MM-DD (default: today)")

    week = sub.add_parser("week", help="Open tasks for each day of a week")
    week.add_argument("--date", type=parse_date_arg, default=None, help="Any day in the week (default: today)")

    month = sub.add_parser("month", help="Project bars for a month")
    month.add_argument("--month", type=parse_month, default=None, help="Month YYYY-MM (default: this month)")
    return ap


def main(argv: Optional[List[str]] = None, store: Optional[PlannerStore] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.debug(f"Running {args.command}")
    if store is None:
        store = PlannerStore(BackendClient(base_url=args.api_url))

    try:
        asyncio.run(store.refresh_all())
    except PlanboxError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.command == "board":
        lines = format_board(store, ViewMode(args.mode), args.date or cm.today())
    elif args.command == "week":
        lines = format_week(store, args.date or cm.today())
    else:
        lines = format_month(store, args.month or cm.start_of_month(cm.today()))

    print("\n".join(lines))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
