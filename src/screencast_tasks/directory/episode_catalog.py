# src/screencast_tasks/directory/episode_catalog.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.models import Episode
from ..tasks.task_models import to_utc

logger = logging.getLogger(__name__)


def _parse_release_at(raw: Any) -> datetime | None:
    if raw in (None, ""):
        return None
    if not isinstance(raw, str):
        raise ValueError(f"release_at must be an ISO-8601 string, got {raw!r}")
    return to_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))


def episode_from_dict(raw: dict[str, Any]) -> Episode:
    number = raw["number"]
    if isinstance(number, bool) or not isinstance(number, int):
        raise ValueError(f"number must be an integer, got {number!r}")
    return Episode(
        number=number,
        id=str(raw["id"]),
        title=str(raw.get("title") or ""),
        synopsis=str(raw.get("synopsis") or ""),
        release_at=_parse_release_at(raw.get("release_at")),
    )


class EpisodeCatalog:
    """Immutable in-memory episode list, indexed by number."""

    def __init__(self, episodes: Iterable[Episode] = ()) -> None:
        by_number: dict[int, Episode] = {}
        for ep in episodes:
            if ep.number in by_number:
                logger.warning("Duplicate episode number %s (%s); keeping %s", ep.number, ep.id, by_number[ep.number].id)
                continue
            by_number[ep.number] = ep
        self._by_number = by_number

    @classmethod
    def from_json_file(cls, path: str | Path) -> EpisodeCatalog:
        """
        Load a JSON array of episodes.

        A missing file gives an empty catalog (every release task is then
        treated as stale). Malformed entries are skipped and logged; a file
        that is not a JSON array is an error.
        """
        path = Path(path)
        if not path.exists():
            logger.warning("Episode catalog %s not found; catalog is empty", path)
            return cls()

        data = json.loads(path.read_text("utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON array of episodes")

        episodes: list[Episode] = []
        for i, raw in enumerate(data):
            try:
                episodes.append(episode_from_dict(raw))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping episode entry #%s in %s: %s", i, path, exc)

        catalog = cls(episodes)
        logger.info("Episode catalog loaded: %s episodes from %s", len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._by_number)

    def __iter__(self) -> Iterator[Episode]:
        return iter(sorted(self._by_number.values(), key=lambda e: e.number))

    def lookup_episode(self, number: int) -> Episode | None:
        return self._by_number.get(number)

    def upcoming(self, now: datetime) -> list[Episode]:
        """Episodes with a release date after `now`, soonest first."""
        now = to_utc(now)
        out = [ep for ep in self if ep.release_at is not None and ep.release_at > now]
        out.sort(key=lambda e: (e.release_at, e.number))
        return out
