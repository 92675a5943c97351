from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import yaml
from rich.console import Console
from rich.table import Table

from .config import get_log_level, get_server_config, load_config
from .constants import DEFAULT_PAGE
from .container import Container
from .domain.models import Criterion, Operation, Page
from .errors import TaskTrackerError, ValidationError
from .logging_utils import configure_logging, pretty


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _container(args: argparse.Namespace) -> Container:
    return Container.for_project(_resolve_project_dir(args.project_dir), backend=args.backend)


def _emit(payload: Any) -> None:
    sys.stdout.write(pretty(payload) + "\n")


def _parse_value(raw: str) -> Any:
    """Parse a filter value as a YAML scalar; anything that is not a plain scalar stays a string."""
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return raw


def parse_filter(raw: str) -> Criterion:
    """Parse ``KEY:OPERATION:VALUE`` (the value may itself contain colons)."""
    parts = raw.split(":", 2)
    if len(parts) != 3 or not parts[0]:
        raise ValidationError(f"Filter must look like KEY:OPERATION:VALUE, got {raw!r}")
    key, op, value = parts
    return Criterion(key=key, value=_parse_value(value), operation=Operation.parse(op))


def _criteria(args: argparse.Namespace) -> list[Criterion]:
    return [parse_filter(item) for item in (args.filter or [])]


def _print_page(page: Page, columns: list[str], as_table: bool) -> None:
    payload = page.to_dict()
    if not as_table:
        _emit(payload)
        return
    table = Table(title=f"page {page.page} (size {page.size}) - {page.total} total")
    for column in columns:
        table.add_column(column)
    for row in payload["list"]:
        table.add_row(*["" if row.get(c) is None else str(row.get(c)) for c in columns])
    Console().print(table)


def _run(args: argparse.Namespace, fn: Callable[[Container], Awaitable[Any]]) -> int:
    try:
        result = asyncio.run(fn(_container(args)))
    except TaskTrackerError as exc:
        sys.stderr.write(exc.message + "\n")
        return 1
    if result is not None:
        _emit(result)
    return 0


# ---------------------------------------------------------------------------
# Task commands
# ---------------------------------------------------------------------------

def _task_create(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        return {"id": await c.task_service.create(args.title, args.description)}

    return _run(args, op)


def _task_get(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        return (await c.task_service.find_by_id(args.task_id)).to_dict()

    return _run(args, op)


def _task_list(args: argparse.Namespace) -> int:
    async def op(c: Container) -> None:
        page = await c.task_service.find_page(args.page, args.size or c.default_page_size, _criteria(args))
        _print_page(page, ["id", "title", "status", "user_id", "creation_date"], args.table)

    return _run(args, op)


def _task_update(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        current = await c.task_service.find_by_id(args.task_id)
        updated = await c.task_service.update(
            args.task_id,
            args.title if args.title is not None else current.title,
            args.description if args.description is not None else current.description,
            args.status or current.status,
        )
        return {"id": updated}

    return _run(args, op)


def _task_delete(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        return {"id": await c.task_service.delete(args.task_id)}

    return _run(args, op)


# ---------------------------------------------------------------------------
# User commands
# ---------------------------------------------------------------------------

def _user_create(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        return {"id": await c.user_service.create(args.name, args.surname, args.username)}

    return _run(args, op)


def _user_get(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        if args.by_username:
            return (await c.user_service.find_by_username(args.user)).to_dict()
        return (await c.user_service.find_by_id(args.user)).to_dict()

    return _run(args, op)


def _user_list(args: argparse.Namespace) -> int:
    async def op(c: Container) -> None:
        page = await c.user_service.find_page(args.page, args.size or c.default_page_size, _criteria(args))
        _print_page(page, ["id", "username", "name", "surname"], args.table)

    return _run(args, op)


def _user_assign(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        assigned = await c.user_service.add_tasks(args.user_id, args.task_ids)
        return [{"id": tid} for tid in assigned]

    return _run(args, op)


def _user_unassign(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        return (await c.user_service.remove_assigned_task(args.user_id, args.task_id)).to_dict()

    return _run(args, op)


def _user_complete(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        return {"id": await c.user_service.complete_task(args.user_id, args.task_id)}

    return _run(args, op)


def _user_delete(args: argparse.Namespace) -> int:
    async def op(c: Container) -> Any:
        return {"id": await c.user_service.delete(args.user_id)}

    return _run(args, op)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

def _server(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    project_dir = _resolve_project_dir(args.project_dir)
    config, _ = load_config(project_dir)
    default_host, default_port = get_server_config(config)
    try:
        app = create_app(container=_container(args))
    except TaskTrackerError as exc:
        sys.stderr.write(exc.message + "\n")
        return 1
    uvicorn.run(app, host=args.host or default_host, port=args.port or default_port)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _non_negative(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return value


def _positive(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return value


def _add_list_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--page", default=DEFAULT_PAGE, type=_non_negative)
    parser.add_argument("--size", default=None, type=_positive)
    parser.add_argument(
        "--filter",
        action="append",
        metavar="KEY:OPERATION:VALUE",
        help="Filter criterion; repeat to AND several together (e.g. status:EQUALS:TO_DO)",
    )
    parser.add_argument("--table", action="store_true", help="Render a table instead of JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Task tracker: users, tasks and assignments")
    parser.add_argument("--project-dir", default=None, help="Project directory holding .task_tracker/ (default: cwd)")
    parser.add_argument("--backend", default=None, choices=["file", "memory"], help="Override the configured storage backend")
    parser.add_argument("--log-level", default=None, help="Log level (default: from config, else INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    server = subparsers.add_parser("server", help="Start the HTTP server")
    server.add_argument("--host", default=None)
    server.add_argument("--port", default=None, type=int)
    server.set_defaults(func=_server)

    task = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task.add_subparsers(dest="task_cmd", required=True)
    tcreate = task_sub.add_parser("create", help="Create a task")
    tcreate.add_argument("title")
    tcreate.add_argument("--description", default="")
    tcreate.set_defaults(func=_task_create)
    tget = task_sub.add_parser("get", help="Show a task")
    tget.add_argument("task_id")
    tget.set_defaults(func=_task_get)
    tlist = task_sub.add_parser("list", help="List tasks with optional filters")
    _add_list_args(tlist)
    tlist.set_defaults(func=_task_list)
    tupdate = task_sub.add_parser("update", help="Overwrite title, description and status")
    tupdate.add_argument("task_id")
    tupdate.add_argument("--title", default=None)
    tupdate.add_argument("--description", default=None)
    tupdate.add_argument("--status", default=None, choices=["TO_DO", "IN_PROGRESS", "DONE"])
    tupdate.set_defaults(func=_task_update)
    tdelete = task_sub.add_parser("delete", help="Delete a task")
    tdelete.add_argument("task_id")
    tdelete.set_defaults(func=_task_delete)

    user = subparsers.add_parser("user", help="Manage users and their tasks")
    user_sub = user.add_subparsers(dest="user_cmd", required=True)
    ucreate = user_sub.add_parser("create", help="Register a user")
    ucreate.add_argument("name")
    ucreate.add_argument("surname")
    ucreate.add_argument("username")
    ucreate.set_defaults(func=_user_create)
    uget = user_sub.add_parser("get", help="Show a user by id (or username)")
    uget.add_argument("user")
    uget.add_argument("--by-username", action="store_true")
    uget.set_defaults(func=_user_get)
    ulist = user_sub.add_parser("list", help="List users with optional filters")
    _add_list_args(ulist)
    ulist.set_defaults(func=_user_list)
    uassign = user_sub.add_parser("assign", help="Assign TO_DO tasks to a user")
    uassign.add_argument("user_id")
    uassign.add_argument("task_ids", nargs="+")
    uassign.set_defaults(func=_user_assign)
    uunassign = user_sub.add_parser("unassign", help="Remove one task from a user")
    uunassign.add_argument("user_id")
    uunassign.add_argument("task_id")
    uunassign.set_defaults(func=_user_unassign)
    ucomplete = user_sub.add_parser("complete", help="Mark a user's task as done")
    ucomplete.add_argument("user_id")
    ucomplete.add_argument("task_id")
    ucomplete.set_defaults(func=_user_complete)
    udelete = user_sub.add_parser("delete", help="Delete a user, unassigning its tasks first")
    udelete.add_argument("user_id")
    udelete.set_defaults(func=_user_delete)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config, _ = load_config(_resolve_project_dir(args.project_dir))
    configure_logging(args.log_level or get_log_level(config))
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == "__main__":
    raise SystemExit(main())
