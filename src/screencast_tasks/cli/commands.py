# src/screencast_tasks/cli/commands.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

from ..core.errors import StoreError
from ..core.state import AppState
from ..tasks.task_api import schedule_episode_release, schedule_team_sync
from ..tasks.task_models import StoredTask
from ..tasks.task_scheduler import run_tick

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry for one-shot administration (/help, /due, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except StoreError as exc:
            logger.exception("Command /%s failed", name)
            return f"Database error: {exc}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_row(row: StoredTask) -> str:
    return f"#{row.id} {row.due_at.strftime('%Y-%m-%d %H:%M:%S')}Z {row.dedupe_key}"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    mode = "PRODUCTION" if getattr(state.settings, "production", False) else "TEST SENDS"
    total = state.task_store.count_tasks()
    due = len(state.task_store.due_tasks())
    return (
        "Status:\n"
        f"  Mode: {mode}\n"
        f"  Database: {state.task_store.db_path}\n"
        f"  Tasks: {total} queued, {due} due\n"
        f"  Episodes in catalog: {len(state.episodes)}"
    )


def cmd_due(state: AppState, args: list[str]) -> str:
    rows = state.task_store.due_tasks()
    if not rows:
        return "No due tasks."
    return "\n".join(["Due tasks:"] + [f"  {_fmt_row(r)}" for r in rows])


def cmd_tasks(state: AppState, args: list[str]) -> str:
    rows = state.task_store.list_tasks()
    if not rows:
        return "No queued tasks."
    return "\n".join(["Queued tasks:"] + [f"  {_fmt_row(r)}" for r in rows])


def cmd_sync(state: AppState, args: list[str]) -> str:
    """
    /sync <user-uuid>  -> queue a seat sync for that user, due now
    """
    if len(args) != 1:
        return "Usage: /sync <user-uuid>"
    try:
        user_id = UUID(args[0])
    except ValueError:
        return f"Not a UUID: {args[0]}"
    schedule_team_sync(state.task_store, user_id)
    return f"Team member sync queued for {user_id}."


def cmd_release(state: AppState, args: list[str]) -> str:
    """
    /release <number>            -> release now
    /release <number> <minutes>  -> release in N minutes
    """
    if not args or len(args) > 2:
        return "Usage: /release <number> [minutes]"
    try:
        number = int(args[0])
        minutes = int(args[1]) if len(args) == 2 else 0
    except ValueError:
        return "Usage: /release <number> [minutes]"

    if state.episodes.lookup_episode(number) is None:
        # Still queued: the executor drops it as stale if the catalog never learns it.
        logger.warning("Release queued for unknown episode %s", number)

    at = schedule_episode_release(state.task_store, number, run_after_minutes=minutes)
    return f"Release of episode {number} queued for {at.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')}Z."


def cmd_tick(state: AppState, args: list[str]) -> str:
    """Run one scheduler tick now and report what happened."""

    async def _once():
        try:
            return await run_tick(state.task_store, state.executor, now=datetime.now(timezone.utc))
        finally:
            await state.aclose()

    report = asyncio.run(_once())
    return (
        f"Tick: fetched={report.fetched} done={len(report.retired)} "
        f"retry={len(report.retained)} unreadable={len(report.undecodable)} "
        f"undeleted={len(report.undeleted)}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show mode, database and queue size.")
registry.register("due", cmd_due, help_text="List tasks that are due now.")
registry.register("tasks", cmd_tasks, help_text="List all queued tasks.", aliases=["ls"])
registry.register("sync", cmd_sync, help_text="Queue a team member sync: /sync <user-uuid>.")
registry.register("release", cmd_release, help_text="Queue an episode release: /release <number> [minutes].")
registry.register("tick", cmd_tick, help_text="Run one scheduler tick now.")
