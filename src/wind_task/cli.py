from __future__ import annotations

import argparse
import json
import sys
from itertools import zip_longest
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from .config import load_config
from .errors import TaskStoreError, ValidationError
from .logging_utils import configure_logging, pretty
from .registry import StoreRegistry
from .store import TaskStore

DEFAULT_ACTOR = "human:cli"

_COLUMN_STYLES = {"TODO": "yellow", "ACTIVE": "cyan", "DONE": "green", "ARCHIVED": "dim"}


def _emit(payload: dict[str, Any]) -> int:
    sys.stdout.write(pretty(payload) + "\n")
    return 0


def _registry(args: argparse.Namespace) -> StoreRegistry:
    config, err = load_config(Path(args.config).expanduser() if args.config else None)
    if err:
        raise SystemExit(f"Invalid config: {err}")
    configure_logging(args.log_level or config.log_level)
    if args.base_dir:
        config.default_base_dir = Path(args.base_dir).expanduser().resolve()
    return StoreRegistry(config)


def _store(args: argparse.Namespace) -> TaskStore:
    return _registry(args).get(args.project)


def _task_out(task: Any) -> int:
    return _emit({"ok": True, "task": task.to_dict()})


# ---------------------------------------------------------------------------
# task subcommands
# ---------------------------------------------------------------------------

def _task_create(args: argparse.Namespace) -> int:
    return _task_out(_store(args).create_task(args.title, args.summary, actor=args.actor))


def _task_show(args: argparse.Namespace) -> int:
    return _task_out(_store(args).get_task(args.task_id))


def _task_list(args: argparse.Namespace) -> int:
    tasks = _store(args).list_tasks(include_archived=not args.exclude_archived)
    return _emit({"ok": True, "tasks": [t.to_dict() for t in tasks], "total": len(tasks)})


def _task_retitle(args: argparse.Namespace) -> int:
    return _task_out(_store(args).retitle(args.task_id, args.title, expected_last_seq=args.expected_seq, actor=args.actor))


def _task_state(args: argparse.Namespace) -> int:
    return _task_out(_store(args).set_state(args.task_id, args.state, expected_last_seq=args.expected_seq, actor=args.actor))


def _task_summary(args: argparse.Namespace) -> int:
    return _task_out(_store(args).set_summary(args.task_id, args.summary, expected_last_seq=args.expected_seq, actor=args.actor))


def _task_set_content(args: argparse.Namespace) -> int:
    if args.file:
        try:
            body = Path(args.file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValidationError(f"Cannot read content file {args.file}: {exc.strerror or exc}") from exc
    elif args.text is not None:
        body = args.text
    else:
        body = sys.stdin.read()
    task = _store(args).set_content(
        args.task_id, body, expected_last_seq=args.expected_seq, actor=args.actor, format=args.format
    )
    return _task_out(task)


def _task_content(args: argparse.Namespace) -> int:
    content = _store(args).read_content(args.task_id)
    return _emit({"ok": True, "id": args.task_id, **content.to_dict()})


def _task_log(args: argparse.Namespace) -> int:
    return _task_out(_store(args).append_log(args.task_id, args.message, expected_last_seq=args.expected_seq, actor=args.actor))


def _task_archive(args: argparse.Namespace) -> int:
    return _task_out(_store(args).archive(args.task_id, args.reason, expected_last_seq=args.expected_seq, actor=args.actor))


def _task_unarchive(args: argparse.Namespace) -> int:
    return _task_out(_store(args).unarchive(args.task_id, expected_last_seq=args.expected_seq, actor=args.actor))


def _task_timeline(args: argparse.Namespace) -> int:
    return _emit(_store(args).timeline_view(args.task_id, after_seq=args.after_seq, limit=args.limit))


def _task_rebuild(args: argparse.Namespace) -> int:
    return _task_out(_store(args).rebuild_snapshot(args.task_id))


# ---------------------------------------------------------------------------
# views
# ---------------------------------------------------------------------------

def render_board(board: dict[str, Any], console: Optional[Console] = None) -> None:
    """Print the board view as a four-column table."""
    console = console or Console()
    table = Table(title="Tasks", show_lines=False, expand=True)
    columns = board["columns"]
    for column in columns:
        style = _COLUMN_STYLES.get(column["name"], "")
        table.add_column(f"{column['name']} ({len(column['items'])})", style=style, overflow="fold")
    for row in zip_longest(*(column["items"] for column in columns)):
        table.add_row(*(f"{item['title']}\n[dim]{item['id']}[/dim]" if item else "" for item in row))
    console.print(table)


def _board(args: argparse.Namespace) -> int:
    board = _store(args).board_view(include_archived=not args.exclude_archived)
    if args.json:
        return _emit(board)
    render_board(board)
    return 0


def _index(args: argparse.Namespace) -> int:
    return _emit(_store(args).index_view(include_archived=not args.exclude_archived))


def _seed(args: argparse.Namespace) -> int:
    """Create one demo task per board column."""
    store = _store(args)
    actor = args.actor

    todo = store.create_task("Write README", "Document server and CLI usage.", actor=actor)
    todo = store.append_log(todo.id, "Initialized repository and base layout.", expected_last_seq=todo.last_event_seq, actor=actor)

    active = store.create_task("Implement board view", "Render TODO/ACTIVE/DONE/ARCHIVED columns.", actor=actor)
    active = store.set_state(active.id, "ACTIVE", expected_last_seq=active.last_event_seq, actor=actor)
    active = store.append_log(active.id, "Basic columns wired up.", expected_last_seq=active.last_event_seq, actor=actor)

    done = store.create_task("Set up task server", "Expose commands and resources.", actor=actor)
    done = store.set_state(done.id, "ACTIVE", expected_last_seq=done.last_event_seq, actor=actor)
    done = store.append_log(done.id, "Resources: index/board/task/timeline.", expected_last_seq=done.last_event_seq, actor=actor)
    done = store.set_state(done.id, "DONE", expected_last_seq=done.last_event_seq, actor=actor)

    archived = store.create_task("Archived example task", "Demonstrates the archive column and freeze.", actor=actor)
    archived = store.archive(archived.id, "Obsolete example.", expected_last_seq=archived.last_event_seq, actor=actor)

    return _emit({"ok": True, "seeded": {"TODO": todo.id, "ACTIVE": active.id, "DONE": done.id, "ARCHIVED": archived.id}})


def _server(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install server extras: pip install 'wind-task[server]'\n")
        return 1

    from .server import create_app

    app = create_app(registry=_registry(args))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


# ---------------------------------------------------------------------------
# parser
# ---------------------------------------------------------------------------

def _add_mutation_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--expected-seq", type=int, required=True, help="Task's last_event_seq as last read")
    parser.add_argument("--actor", default=DEFAULT_ACTOR)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="wind-task: append-only task tracker")
    parser.add_argument("--project", default=None, help="Project name from the config (default: the default store)")
    parser.add_argument("--base-dir", default=None, help="Override the default project's directory")
    parser.add_argument("--config", default=None, help="Config file (default: $WIND_TASK_CONFIG or ~/.wind-task/config.yaml)")
    parser.add_argument("--log-level", default=None, help="Log level (default: from config, else INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    server = subparsers.add_parser("server", help="Start the HTTP server")
    server.add_argument("--host", default="127.0.0.1")
    server.add_argument("--port", default=8000, type=int)
    server.set_defaults(func=_server)

    task = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task.add_subparsers(dest="task_cmd", required=True)

    tcreate = task_sub.add_parser("create", help="Create a task")
    tcreate.add_argument("title")
    tcreate.add_argument("--summary", default=None)
    tcreate.add_argument("--actor", default=DEFAULT_ACTOR)
    tcreate.set_defaults(func=_task_create)

    tshow = task_sub.add_parser("show", help="Show a task snapshot")
    tshow.add_argument("task_id")
    tshow.set_defaults(func=_task_show)

    tlist = task_sub.add_parser("list", help="List tasks, most recently updated first")
    tlist.add_argument("--exclude-archived", action="store_true")
    tlist.set_defaults(func=_task_list)

    tretitle = task_sub.add_parser("retitle", help="Change a task's title")
    tretitle.add_argument("task_id")
    tretitle.add_argument("title")
    _add_mutation_args(tretitle)
    tretitle.set_defaults(func=_task_retitle)

    tstate = task_sub.add_parser("state", help="Set state TODO|ACTIVE|DONE")
    tstate.add_argument("task_id")
    tstate.add_argument("state")
    _add_mutation_args(tstate)
    tstate.set_defaults(func=_task_state)

    tsummary = task_sub.add_parser("summary", help="Set the task summary")
    tsummary.add_argument("task_id")
    tsummary.add_argument("summary")
    _add_mutation_args(tsummary)
    tsummary.set_defaults(func=_task_summary)

    tsetc = task_sub.add_parser("set-content", help="Replace the task body (from --file, --text or stdin)")
    tsetc.add_argument("task_id")
    tsetc.add_argument("--file", default=None)
    tsetc.add_argument("--text", default=None)
    tsetc.add_argument("--format", default="markdown", choices=["markdown", "text"])
    _add_mutation_args(tsetc)
    tsetc.set_defaults(func=_task_set_content)

    tcontent = task_sub.add_parser("content", help="Print the task body")
    tcontent.add_argument("task_id")
    tcontent.set_defaults(func=_task_content)

    tlog = task_sub.add_parser("log", help="Append a log message")
    tlog.add_argument("task_id")
    tlog.add_argument("message")
    _add_mutation_args(tlog)
    tlog.set_defaults(func=_task_log)

    tarchive = task_sub.add_parser("archive", help="Archive (freeze) a task")
    tarchive.add_argument("task_id")
    tarchive.add_argument("--reason", default=None)
    _add_mutation_args(tarchive)
    tarchive.set_defaults(func=_task_archive)

    tunarchive = task_sub.add_parser("unarchive", help="Unarchive a task")
    tunarchive.add_argument("task_id")
    _add_mutation_args(tunarchive)
    tunarchive.set_defaults(func=_task_unarchive)

    ttimeline = task_sub.add_parser("timeline", help="Show a task's events")
    ttimeline.add_argument("task_id")
    ttimeline.add_argument("--after-seq", type=int, default=None)
    ttimeline.add_argument("--limit", type=int, default=None)
    ttimeline.set_defaults(func=_task_timeline)

    trebuild = task_sub.add_parser("rebuild", help="Rebuild a snapshot by replaying its event log")
    trebuild.add_argument("task_id")
    trebuild.set_defaults(func=_task_rebuild)

    board = subparsers.add_parser("board", help="Show the board")
    board.add_argument("--json", action="store_true", help="Print the board view as JSON")
    board.add_argument("--exclude-archived", action="store_true")
    board.set_defaults(func=_board)

    index = subparsers.add_parser("index", help="Print the flat task index")
    index.add_argument("--exclude-archived", action="store_true")
    index.set_defaults(func=_index)

    seed = subparsers.add_parser("seed", help="Create demo tasks in every column")
    seed.add_argument("--actor", default="human:dev")
    seed.set_defaults(func=_seed)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except TaskStoreError as exc:
        logger.debug("Command failed: {}", exc)
        sys.stderr.write(json.dumps({"ok": False, "error": exc.code, "message": str(exc)}) + "\n")
        return 1
