# tests/test_cli.py

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from eisenq.cli import main as cli


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


def run(settings: SimpleNamespace, *argv: str) -> int:
    return cli.main(list(argv), settings=settings)


def _tasks(settings: SimpleNamespace) -> list[dict]:
    return json.loads(settings.tasks_path.read_text("utf-8"))


def test_add_and_today(settings, capsys) -> None:
    assert run(settings, "add", "Fix", "crash", "!!!$$$") == 0
    assert "Added: Fix crash (u3i3, DO FIRST)" in capsys.readouterr().out

    assert run(settings) == 0
    out = capsys.readouterr().out
    assert "DO FIRST:" in out
    assert " 1. [ ] Fix crash  (u3i3)" in out


def test_add_tomorrow_only_shows_tomorrow(settings, capsys) -> None:
    run(settings, "add", "Later", "--tomorrow")
    capsys.readouterr()

    run(settings, "today")
    assert "Later" not in capsys.readouterr().out
    run(settings, "list", "tomorrow")
    assert "Later" in capsys.readouterr().out


def test_done_by_number(settings, capsys) -> None:
    run(settings, "add", "Pay", "rent", "u3i3")
    assert run(settings, "done", "1") == 0
    assert _tasks(settings)[0]["status"] == "completed"
    assert "Completed: Pay rent" in capsys.readouterr().out


def test_done_by_id_prefix(settings) -> None:
    run(settings, "add", "Email")
    task_id = _tasks(settings)[0]["id"]
    assert run(settings, "done", task_id[:8]) == 0


def test_unknown_reference_exits_1(settings, capsys) -> None:
    assert run(settings, "drop", "zzzz") == 1
    assert "Task not found: zzzz" in capsys.readouterr().err


def test_edit_notation_and_flags(settings) -> None:
    run(settings, "add", "Draft", "u1i1")
    assert run(settings, "edit", "1", "u3") == 0
    assert (_tasks(settings)[0]["urgency"], _tasks(settings)[0]["importance"]) == (3, 1)

    assert run(settings, "edit", "1", "--importance", "2", "--title", "Final") == 0
    task = _tasks(settings)[0]
    assert (task["title"], task["urgency"], task["importance"]) == ("Final", 3, 2)


def test_edit_without_changes_is_usage_error(settings) -> None:
    run(settings, "add", "Draft")
    assert run(settings, "edit", "1") == 2


def test_out_of_range_flag_is_rejected_by_argparse(settings) -> None:
    with pytest.raises(SystemExit) as exc:
        run(settings, "edit", "1", "--urgency", "5")
    assert exc.value.code == 2


def test_move_and_week(settings, capsys) -> None:
    run(settings, "add", "Trip", "u2i2")
    assert run(settings, "move", "1", "--days", "2") == 0
    assert _tasks(settings)[0]["scheduled_day"] == 2
    capsys.readouterr()

    run(settings, "today")
    assert "Trip" not in capsys.readouterr().out


def test_stats(settings, capsys) -> None:
    run(settings, "add", "Quick", "u3i3")
    run(settings, "done", "1")
    capsys.readouterr()

    assert run(settings, "stats") == 0
    out = capsys.readouterr().out
    assert "DO FIRST" in out
    assert out.splitlines()[-1].split() == ["TOTAL", "1"]


def test_storage_error_exits_3(settings, capsys) -> None:
    settings.tasks_path.parent.mkdir(parents=True)
    settings.tasks_path.write_text("[{broken", "utf-8")
    assert run(settings, "today") == 3
    assert "Error:" in capsys.readouterr().err


def test_unusable_data_dir_exits_3(settings, capsys) -> None:
    settings.data_dir.parent.mkdir(parents=True, exist_ok=True)
    settings.data_dir.write_text("not a directory", "utf-8")
    assert run(settings, "today") == 3
    assert "Error:" in capsys.readouterr().err


def test_unwritable_log_dir_exits_3(settings, capsys, monkeypatch) -> None:
    def broken(**kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(cli, "setup_logging", broken)
    assert run(settings, "today") == 3
    assert "denied" in capsys.readouterr().err
