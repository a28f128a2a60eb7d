# src/tasksync/cli/commands.py

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..errors import ValidationError
from ..tasks import task_api
from ..tasks.task_batch import apply_raw_batch
from ..tasks.task_models import Outcome, OutcomeStatus, TaskRecord
from ..tasks.task_sync import build_sync_response, get_stats

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the admin console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._raw: set[str] = set()

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        raw: bool = False,
    ) -> None:
        """raw=True: args is [rest of the line] with inner whitespace kept (e.g. JSON)."""
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler
        if raw:
            self._raw.update([key, *(a.lower() for a in aliases)])

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split(maxsplit=1)
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        rest = parts[1].strip() if len(parts) > 1 else ""
        if name in self._raw:
            args = [rest] if rest else []
        else:
            args = rest.split()

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ms: int) -> str:
    if not ms:
        return "never"
    return datetime.fromtimestamp(ms / 1000).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _fmt_task(t: TaskRecord) -> str:
    mark = "x" if t.completed else " "
    return f"[{mark}] {t.id} v{t.version} ({t.priority.value}) {t.title}"


def _fmt_outcome(outcome: Outcome, verb: str) -> str:
    if outcome.status == OutcomeStatus.NOT_FOUND:
        return "Task not found."
    if outcome.status == OutcomeStatus.CONFLICT and outcome.server_task is not None:
        return (
            f"Conflict: server has v{outcome.server_task.version}.\n"
            f"  {_fmt_task(outcome.server_task)}"
        )
    if outcome.task is not None:
        return f"{verb}: {_fmt_task(outcome.task)}"
    return f"{verb}."


def _int_arg(args: list[str], idx: int) -> int | None:
    if len(args) <= idx:
        return None
    try:
        return int(args[idx])
    except ValueError:
        return None


def _opt_arg(args: list[str], idx: int) -> str | None:
    return args[idx] if len(args) > idx else None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    snapshot = (
        str(getattr(settings, "snapshot_path", "?"))
        if getattr(settings, "snapshot_enabled", False)
        else "OFF"
    )
    return (
        "Status:\n"
        f"  User: {state.user_id}\n"
        f"  Tasks in store: {state.store.count_tasks()}\n"
        f"  Snapshot: {snapshot}\n"
        f"  Snapshot write failures: {state.store.persist_failures}"
    )


def cmd_user(state: AppState, args: list[str]) -> str:
    """
    /user       -> show current user
    /user <id>  -> act as another user
    """
    if not args:
        return f"Current user: {state.user_id}"
    logger.debug("Console user switch %s -> %s", state.user_id, args[0])
    state.user_id = args[0]
    return f"Now acting as user {state.user_id}."


def cmd_add(state: AppState, args: list[str]) -> str:
    try:
        task = task_api.create_task(
            state.store, {"title": " ".join(args), "userId": state.user_id}
        )
    except ValidationError as e:
        return f"Invalid {e.field}: {e.message}. Usage: /add <title>"
    return f"Created: {_fmt_task(task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list          -> all tasks of the current user
    /list <since>  -> only tasks modified after <since> (epoch ms)
    """
    since = _int_arg(args, 0)
    resp = build_sync_response(state.store, state.user_id, since)
    if not resp.tasks:
        return f"No tasks for user {state.user_id}."
    lines = [f"Tasks for {state.user_id} (lastSync={resp.last_sync}):"]
    lines.extend(f"  {_fmt_task(t)}" for t in resp.tasks)
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    task = state.store.get_task(args[0])
    if task is None:
        return "Task not found."
    return json.dumps(task.to_dict(), ensure_ascii=False, indent=2)


def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <id> [version] -> mark completed (version enables the conflict check)"""
    if not args:
        return "Usage: /done <id> [version]"
    outcome = state.store.update_task(args[0], {"completed": True}, _opt_arg(args, 1))
    return _fmt_outcome(outcome, "Completed")


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id> [version]"
    outcome = task_api.delete_task(state.store, args[0], _opt_arg(args, 1))
    return _fmt_outcome(outcome, "Deleted")


def cmd_stats(state: AppState, args: list[str]) -> str:
    stats = get_stats(state.store, state.user_id)
    return (
        f"Stats for {state.user_id}:\n"
        f"  Total: {stats.total}\n"
        f"  Completed: {stats.completed}\n"
        f"  Pending: {stats.pending}\n"
        f"  Last change: {_fmt_ts(stats.last_sync)}"
    )


def cmd_batch(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/batch <json array of operations>"""
    if not args:
        return 'Usage: /batch [{"type": "CREATE", "data": {"title": "x"}}, ...]'
    try:
        raw = json.loads(args[0])
    except ValueError as e:
        return f"Invalid JSON: {e}"
    if not isinstance(raw, list):
        return "Batch must be a JSON array."

    if emit:
        emit(f"Applying {len(raw)} operation(s)...")

    result = apply_raw_batch(state.store, raw)
    lines = [f"Batch done: {len(result.results)} op(s), {result.failed} failed."]
    for i, r in enumerate(result.results, start=1):
        lines.append(f"  {i}. {r.status.value}" + (f" {r.task.id} v{r.task.version}" if r.task else ""))
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store/snapshot status.")
registry.register("user", cmd_user, help_text="Show or switch the current user: /user [id].")
registry.register("add", cmd_add, help_text="Create a task: /add <title>.")
registry.register("list", cmd_list, help_text="List tasks: /list [since_ms].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task as JSON: /show <id>.")
registry.register("done", cmd_done, help_text="Complete a task: /done <id> [version].")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id> [version].", aliases=["del"])
registry.register("stats", cmd_stats, help_text="Totals for the current user.")
registry.register("batch", cmd_batch, help_text="Apply a JSON batch: /batch [...].", raw=True)
