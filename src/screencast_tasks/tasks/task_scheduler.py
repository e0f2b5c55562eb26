# src/screencast_tasks/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduler.

A small polling loop that:
- fetches the due rows (one snapshot per tick),
- decodes and executes them strictly one after another,
- deletes a row only after its task reports success,
- leaves failed rows untouched so the next tick retries them.

One coroutine drives every tick, so a tick always drains completely before
the next one starts. Deadlines missed while a long batch runs are coalesced.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..core.errors import DecodeError, StoreError
from ..core.ports import TaskRepo, TaskRunner
from .task_models import StoredTask

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TickReport:
    """What one tick did with its snapshot."""

    fetched: int = 0
    retired: list[int] = field(default_factory=list)
    retained: list[int] = field(default_factory=list)
    undecodable: list[int] = field(default_factory=list)
    undeleted: list[int] = field(default_factory=list)


async def process_stored_task(
        task_store: TaskRepo,
        runner: TaskRunner,
        row: StoredTask,
        report: TickReport | None = None,
) -> bool:
    """
    Run one stored row to completion.

    Returns the executor's verdict. DecodeError is logged and the row is kept.
    A StoreError on delete is logged; the row stays and will run again.
    """
    if report is None:
        report = TickReport()

    try:
        task = row.task()
    except DecodeError:
        logger.exception("Task %s has an unreadable payload; leaving it in place", row.id)
        report.undecodable.append(row.id)
        return False

    success = await runner.execute(task)
    if not success:
        logger.info("Task %s (%s) not done; will retry", row.id, row.dedupe_key)
        report.retained.append(row.id)
        return False

    try:
        task_store.delete(row)
    except StoreError:
        logger.exception("Failed to delete task %s from database", row.id)
        report.undeleted.append(row.id)
        return True

    logger.info("Task %s (%s) done", row.id, row.dedupe_key)
    report.retired.append(row.id)
    return True


async def run_tick(task_store: TaskRepo, runner: TaskRunner, *, now: datetime | None = None) -> TickReport:
    """
    One poll: snapshot the due rows and drain them in due order.

    Rows scheduled while the batch runs are not part of the snapshot and wait
    for the next tick.
    """
    report = TickReport()
    try:
        rows = task_store.due_tasks(now=now or datetime.now(timezone.utc))
    except StoreError:
        logger.exception("due_tasks failed")
        return report

    report.fetched = len(rows)
    if not rows:
        return report

    logger.debug("Tick: %s due task(s)", len(rows))
    for row in rows:
        try:
            await process_stored_task(task_store, runner, row, report)
        except Exception:
            logger.exception("Task %s crashed; moving on", row.id)
            report.retained.append(row.id)
    return report


async def run_task_scheduler(
        task_store: TaskRepo,
        runner: TaskRunner,
        *,
        interval_seconds: float = 10.0,
        leeway_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        on_tick: Callable[[TickReport], None] | None = None,
) -> None:
    """
    Fixed-rate polling scheduler.

    - the first tick runs immediately
    - later ticks run every interval_seconds on a fixed grid
    - waking up more than leeway_seconds after a deadline is logged as drift
    - a batch running more than leeway_seconds past the next deadline is
      logged once as an overrun, not again as drift on the following tick
    - missed deadlines collapse into a single immediate tick (ticks never
      overlap)

    To stop the scheduler, cancel the coroutine/task.
    """
    interval = max(0.01, float(interval_seconds))
    leeway = max(0.0, float(leeway_seconds))

    deadline = clock()
    overran = False
    while True:
        late = clock() - deadline
        if late > leeway and not overran:
            logger.warning("Scheduler tick late by %.2fs", late)

        report = await run_tick(task_store, runner)
        if on_tick is not None:
            on_tick(report)

        deadline += interval
        now = clock()
        overrun = now - deadline
        overran = overrun > leeway
        if overran:
            logger.warning(
                "Batch overran the next tick by %.2fs; skipping %s more tick(s)", overrun, int(overrun // interval)
            )
        if overrun > 0:
            deadline += int(overrun // interval) * interval
        await asyncio.sleep(max(0.0, deadline - clock()))
