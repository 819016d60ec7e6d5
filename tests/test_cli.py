from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from wind_task.cli import main, render_board


def _run(tmp_path: Path, capsys: pytest.CaptureFixture[str], *args: str) -> tuple[int, dict]:
    base = ["--config", str(tmp_path / "missing.yaml"), "--base-dir", str(tmp_path / "store"), "--log-level", "WARNING"]
    rc = main(base + list(args))
    captured = capsys.readouterr()
    stream = captured.out if rc == 0 else captured.err.strip().splitlines()[-1]
    return rc, json.loads(stream)


def test_task_create_show_and_list(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, out = _run(tmp_path, capsys, "task", "create", "CLI Task", "--summary", "from the shell")
    assert rc == 0
    task = out["task"]
    assert task["title"] == "CLI Task"
    assert (tmp_path / "store" / task["id"] / "events.jsonl").exists()

    rc, out = _run(tmp_path, capsys, "task", "show", task["id"])
    assert out["task"]["summary"] == "from the shell"

    rc, out = _run(tmp_path, capsys, "task", "list")
    assert out["total"] == 1


def test_mutations_need_expected_seq(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _, out = _run(tmp_path, capsys, "task", "create", "Seq")
    tid = out["task"]["id"]

    rc, out = _run(tmp_path, capsys, "task", "state", tid, "active", "--expected-seq", "1")
    assert rc == 0
    assert out["task"]["state"] == "ACTIVE"

    rc, out = _run(tmp_path, capsys, "task", "log", tid, "stale write", "--expected-seq", "1")
    assert rc == 1
    assert out == {"ok": False, "error": "conflict", "message": "expected_last_seq=1 does not match current=2"}


def test_content_and_timeline(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _, out = _run(tmp_path, capsys, "task", "create", "Doc")
    tid = out["task"]["id"]
    body = tmp_path / "body.md"
    body.write_text("# Heading\n\ntext\n", encoding="utf-8")

    rc, _ = _run(tmp_path, capsys, "task", "set-content", tid, "--file", str(body), "--expected-seq", "1")
    assert rc == 0
    _, out = _run(tmp_path, capsys, "task", "content", tid)
    assert out["content"] == "# Heading\n\ntext\n"
    assert out["format"] == "markdown"

    _, out = _run(tmp_path, capsys, "task", "timeline", tid, "--limit", "1")
    assert [e["type"] for e in out["events"]] == ["content_set"]


def test_archive_freeze_and_unarchive(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _, out = _run(tmp_path, capsys, "task", "create", "Freeze")
    tid = out["task"]["id"]

    rc, _ = _run(tmp_path, capsys, "task", "archive", tid, "--reason", "paused", "--expected-seq", "1")
    assert rc == 0
    rc, out = _run(tmp_path, capsys, "task", "summary", tid, "nope", "--expected-seq", "2")
    assert rc == 1
    assert out["error"] == "archived"

    rc, out = _run(tmp_path, capsys, "task", "unarchive", tid, "--expected-seq", "2")
    assert rc == 0
    assert out["task"]["last_event_seq"] == 3

    rc, out = _run(tmp_path, capsys, "task", "rebuild", tid)
    assert rc == 0
    assert out["task"]["last_event_seq"] == 3


def test_seed_board_and_index(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, out = _run(tmp_path, capsys, "seed")
    assert rc == 0
    seeded = out["seeded"]

    _, board = _run(tmp_path, capsys, "board", "--json")
    for column in board["columns"]:
        assert [item["id"] for item in column["items"]] == [seeded[column["name"]]]

    _, index = _run(tmp_path, capsys, "index", "--exclude-archived")
    assert len(index["items"]) == 3


def test_set_content_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _, out = _run(tmp_path, capsys, "task", "create", "Doc")
    tid = out["task"]["id"]

    rc, out = _run(tmp_path, capsys, "task", "set-content", tid, "--file", str(tmp_path / "missing.md"), "--expected-seq", "1")
    assert rc == 1
    assert out["ok"] is False
    assert out["error"] == "validation"
    assert "missing.md" in out["message"]

    _, out = _run(tmp_path, capsys, "task", "show", tid)
    assert out["task"]["last_event_seq"] == 1


def test_show_missing_task(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, out = _run(tmp_path, capsys, "task", "show", "01ARZ3NDEKTSV4RRFFQ69G5FAV")
    assert rc == 1
    assert out["error"] == "not_found"


def test_invalid_config_exits(tmp_path: Path) -> None:
    bad = tmp_path / "config.yaml"
    bad.write_text("projects: [unclosed", encoding="utf-8")
    with pytest.raises(SystemExit, match="Invalid config"):
        main(["--config", str(bad), "task", "list"])


def test_render_board() -> None:
    board = {
        "columns": [
            {"name": "TODO", "items": [{"id": "A1", "title": "First"}, {"id": "A2", "title": "Second"}]},
            {"name": "ACTIVE", "items": []},
            {"name": "DONE", "items": [{"id": "B1", "title": "Shipped"}]},
            {"name": "ARCHIVED", "items": []},
        ]
    }
    buffer = io.StringIO()
    render_board(board, console=Console(file=buffer, width=160))
    text = buffer.getvalue()
    assert "TODO (2)" in text
    assert "Shipped" in text
    assert "ARCHIVED (0)" in text
