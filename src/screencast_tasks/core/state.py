# src/screencast_tasks/core/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..directory.episode_catalog import EpisodeCatalog
from ..directory.user_store import UserStore
from ..tasks.task_executor import TaskExecutor
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    # Settings object (config.Settings in production, SimpleNamespace in tests).
    settings: Any

    task_store: TaskStore
    users: UserStore
    episodes: EpisodeCatalog
    executor: TaskExecutor

    # HTTP clients owned by the app; closed on shutdown.
    closeables: list[Any] = field(default_factory=list)

    async def aclose(self) -> None:
        """Best-effort: one failing client does not keep the others open."""
        for c in self.closeables:
            try:
                await c.aclose()
            except Exception:
                logger.exception("Failed to close %r", c)
        self.closeables.clear()
