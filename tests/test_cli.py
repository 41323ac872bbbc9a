"""Tests for the read-only CLI views."""

import asyncio
from datetime import date

import pytest

from planbox.cli import build_parser, format_board, format_month, format_week, main
from planbox.engine.date_window import ViewMode
from planbox.errors import NetworkFailure


@pytest.fixture
def loaded(planner, fake_client, make_task, make_project):
    fake_client.tasks.rows.update({
        "a": make_task("a", title="Write report", status="todo"),
        "b": make_task("b", title="Ship release", status="in_progress", planned_date="2026-10-16"),
    })
    fake_client.projects.rows["p"] = make_project("p", name="Launch")
    asyncio.run(planner.refresh_all())
    return planner


def test_board_lists_columns(loaded):
    """The board view lists each column with its count."""
    lines = format_board(loaded, ViewMode.WEEK, date(2026, 10, 14))

    assert lines[0] == "Board 2026-10-11 .. 2026-10-17"
    assert "To Do (1)" in lines
    assert "  - Write report [medium]" in lines
    assert "In Progress (1)" in lines
    assert "Completed (0)" in lines


def test_week_lists_each_day(loaded):
    """The week view lists all seven days."""
    lines = format_week(loaded, date(2026, 10, 14))

    assert lines[0] == "Sun 2026-10-11"
    assert "Wed 2026-10-14" in lines
    assert lines[lines.index("Wed 2026-10-14") + 1] == "  - Write report"
    assert lines.count("  (nothing planned)") == 5


def test_month_draws_project_bars(loaded):
    """Project bars are drawn at their grid offset."""
    lines = format_month(loaded, date(2026, 10, 1), width=35)

    assert lines[0].startswith("October 2026")
    bar_line = lines[1]
    assert "Launch" in bar_line
    # 35-day grid from 2026-09-27: offset 10, ten days wide
    assert "|" + " " * 10 + "#" * 10 + " " in bar_line


def test_parser_rejects_bad_month():
    """Months must be YYYY-MM."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["month", "--month", "October"])


def test_main_prints_board(loaded, capsys):
    """main prints the requested board."""
    assert main(["board", "--mode", "day", "--date", "2026-10-16"], store=loaded) == 0

    out = capsys.readouterr().out
    assert "Board 2026-10-16 .. 2026-10-16" in out
    assert "Ship release" in out


def test_main_reports_backend_errors(planner, fake_client, capsys):
    """Backend errors exit with status 1."""
    fake_client.tasks.get_all.side_effect = NetworkFailure("Connection refused")

    assert main(["week"], store=planner) == 1
    assert "Connection refused" in capsys.readouterr().err
