# src/screencast_tasks/tasks/task_models.py

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, ClassVar, TypeAlias
from uuid import UUID

from ..core.errors import DecodeError

# Dedupe keys count seconds from this epoch so rows written by earlier
# deployments keep colliding with freshly computed keys.
REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)

# Only the dashed 8-4-4-4-12 form; urn:uuid:, braces and bare hex are rejected.
_CANONICAL_UUID = re.compile(r"[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}")


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def reference_seconds(value: datetime) -> float:
    return (to_utc(value) - REFERENCE_DATE).total_seconds()


class TaskKind(StrEnum):
    """Wire tags. They double as the first segment of every dedupe key."""

    SYNC_TEAM_MEMBERS = "syncTeamMembersWithRecurly"
    RELEASE_EPISODE = "releaseEpisode"


def _dump(kind: TaskKind, value: Any) -> bytes:
    return json.dumps({kind.value: value}, separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True, slots=True)
class SyncTeamMembers:
    """Bring the billing seat count in line with the user's team size."""

    user_id: UUID

    kind: ClassVar[TaskKind] = TaskKind.SYNC_TEAM_MEMBERS

    def encode(self) -> bytes:
        return _dump(self.kind, str(self.user_id).upper())

    def dedupe_key(self, at: datetime) -> str:
        # Date-independent: repeated syncs for one user collapse into one row.
        return f"{self.kind.value}:{str(self.user_id).upper()}"


@dataclass(frozen=True, slots=True)
class ReleaseEpisode:
    """Publish an episode: open its sources, rebuild the site, send the mailing."""

    number: int

    kind: ClassVar[TaskKind] = TaskKind.RELEASE_EPISODE

    def encode(self) -> bytes:
        return _dump(self.kind, self.number)

    def dedupe_key(self, at: datetime) -> str:
        # Includes the date: the same episode scheduled at two times is two rows.
        return f"{self.kind.value}:{self.number}:{reference_seconds(at)!r}"


Task: TypeAlias = SyncTeamMembers | ReleaseEpisode


def _decode_sync(value: Any) -> SyncTeamMembers:
    if not isinstance(value, str):
        raise DecodeError(f"{TaskKind.SYNC_TEAM_MEMBERS.value} expects a UUID string, got {type(value).__name__}")
    if not _CANONICAL_UUID.fullmatch(value):
        raise DecodeError(f"invalid user id {value!r}")
    return SyncTeamMembers(user_id=UUID(value))


def _decode_release(value: Any) -> ReleaseEpisode:
    # bool is an int subclass; JSON true/false is not an episode number.
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{TaskKind.RELEASE_EPISODE.value} expects an integer, got {type(value).__name__}")
    return ReleaseEpisode(number=value)


_DECODERS = {
    TaskKind.SYNC_TEAM_MEMBERS.value: _decode_sync,
    TaskKind.RELEASE_EPISODE.value: _decode_release,
}


def _unique_members(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    for name, value in pairs:
        if name in doc:
            raise DecodeError(f"duplicate member {name!r} in payload")
        doc[name] = value
    return doc


def decode_task(raw: bytes | str) -> Task:
    """
    Decode a persisted payload.

    The payload must be a JSON object with exactly one member, named after a
    known tag, holding a value of that tag's type. Anything else raises
    DecodeError.
    """
    try:
        doc = json.loads(raw, object_pairs_hook=_unique_members)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"payload is not JSON: {exc}") from exc

    if not isinstance(doc, dict):
        raise DecodeError(f"payload must be a JSON object, got {type(doc).__name__}")

    known = [name for name in doc if name in _DECODERS]
    if len(doc) != 1 or len(known) != 1:
        raise DecodeError(f"payload must hold exactly one known task tag, got {sorted(doc)!r}")

    (tag,) = known
    return _DECODERS[tag](doc[tag])


@dataclass(frozen=True, slots=True)
class StoredTask:
    """One row of the tasks table."""

    id: int
    due_at: datetime
    payload: str
    dedupe_key: str

    def task(self) -> Task:
        return decode_task(self.payload)
