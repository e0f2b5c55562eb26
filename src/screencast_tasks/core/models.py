# src/screencast_tasks/core/models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    email: str
    name: str = ""


@dataclass(frozen=True, slots=True)
class TeamMember:
    user_id: UUID
    team_member_id: UUID
    created_at: float


@dataclass(frozen=True, slots=True)
class AddOn:
    code: str
    quantity: int


@dataclass(frozen=True, slots=True)
class Subscription:
    id: str
    state: str
    plan_code: str
    add_ons: tuple[AddOn, ...] = ()

    def add_on_quantity(self, code: str | None = None) -> int:
        """
        Quantity of the add-on with `code`, or of the first add-on when no code is given.

        A missing add-on counts as zero seats.
        """
        for add_on in self.add_ons:
            if code is None or add_on.code == code:
                return add_on.quantity
        return 0


@dataclass(frozen=True, slots=True)
class Episode:
    number: int
    id: str  # source repository name
    title: str
    synopsis: str = ""
    release_at: datetime | None = None
