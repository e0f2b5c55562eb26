# src/screencast_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either:
- runs a single admin command (`screencast-tasks due`, `screencast-tasks /sync <uuid>`), or
- runs the polling scheduler until SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry as command_registry
from ..config import get_settings
from ..core.errors import StoreError
from ..core.state import AppState
from ..logging_setup import level_from_name, setup_logging
from ..tasks.task_api import schedule_upcoming_releases
from ..tasks.task_scheduler import run_task_scheduler

logger = logging.getLogger(__name__)


async def serve(state: AppState) -> None:
    """Run the scheduler until a stop signal arrives, then close service clients."""
    settings = state.settings
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms do not support signal handlers on the loop.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    scheduler = asyncio.create_task(
        run_task_scheduler(
            state.task_store,
            state.executor,
            interval_seconds=settings.poll_interval_seconds,
            leeway_seconds=settings.poll_leeway_seconds,
        ),
        name="task-scheduler",
    )
    logger.info(
        "Scheduler running every %ss (leeway %ss). Press Ctrl+C to stop.",
        settings.poll_interval_seconds,
        settings.poll_leeway_seconds,
    )

    stopper = asyncio.create_task(stop.wait())
    try:
        done, _ = await asyncio.wait({scheduler, stopper}, return_when=asyncio.FIRST_COMPLETED)
        if scheduler in done:
            # The loop never returns on its own; surface whatever killed it.
            scheduler.result()
        logger.info("Stop signal received, shutting down...")
    finally:
        for t in (scheduler, stopper):
            t.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler
        with contextlib.suppress(asyncio.CancelledError):
            await stopper
        await state.aclose()


def run_command(state: AppState, argv: list[str]) -> int:
    line = " ".join(argv)
    if not line.startswith("/"):
        line = "/" + line
    reply = command_registry.handle(state, line)
    print(reply or "")
    return 0 if reply and not reply.startswith(("Unknown command", "Usage", "Database error")) else 1


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    settings = get_settings()

    setup_logging(log_dir=settings.data_dir, console_level=level_from_name(getattr(settings, "log_level", None)))

    state = create_initial_state(settings=settings)

    if argv:
        try:
            return run_command(state, argv)
        finally:
            asyncio.run(state.aclose())

    logger.info("Starting %s (production=%s)...", settings.app_name, settings.production)
    try:
        schedule_upcoming_releases(state.task_store, state.episodes)
    except StoreError:
        logger.exception("Could not schedule upcoming releases; continuing")

    asyncio.run(serve(state))
    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
