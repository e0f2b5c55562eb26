# src/screencast_tasks/services/recurly.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.models import AddOn, Subscription, User
from .http import HttpLoader

logger = logging.getLogger(__name__)

RECURLY_ACCEPT = "application/vnd.recurly.v2021-02-25+json"


class RecurlyBilling:
    """
    BillingService backed by the Recurly v3 API.

    Accounts are keyed by the user's id (account code). Team seats are an
    add-on on the subscription; its quantity tracks the team size.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://v3.recurly.com",
        seat_add_on_code: str = "team_members",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.seat_add_on_code = seat_add_on_code
        self._http = HttpLoader(
            "recurly",
            base_url=base_url,
            headers={"Accept": RECURLY_ACCEPT},
            auth=(api_key, ""),
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    def _parse_subscription(self, raw: Any) -> Subscription:
        if not isinstance(raw, dict) or not raw.get("id"):
            raise self._http.fail("subscription payload has no id")

        add_ons: list[AddOn] = []
        for item in raw.get("add_ons") or []:
            if not isinstance(item, dict):
                continue
            code = (item.get("add_on") or {}).get("code") or item.get("code")
            try:
                quantity = int(item.get("quantity") or 0)
            except (TypeError, ValueError) as exc:
                raise self._http.fail(f"bad add-on quantity {item.get('quantity')!r}") from exc
            if code:
                add_ons.append(AddOn(code=str(code), quantity=quantity))

        return Subscription(
            id=str(raw["id"]),
            state=str(raw.get("state") or ""),
            plan_code=str((raw.get("plan") or {}).get("code") or ""),
            add_ons=tuple(add_ons),
        )

    async def fetch_subscription(self, user: User) -> Subscription | None:
        """The user's first active subscription, or None when there is none (or no account)."""
        body = await self._http.load(
            "GET",
            f"/accounts/code-{str(user.id).upper()}/subscriptions",
            params={"state": "active", "limit": 1},
            allow_not_found=True,
        )
        if body is None:
            return None
        data = body.get("data") if isinstance(body, dict) else None
        if not data:
            return None
        return self._parse_subscription(data[0])

    async def update_seat_count(self, subscription: Subscription, count: int) -> Subscription | None:
        """
        Change the seat add-on quantity immediately and return the subscription as billed afterwards.

        None if the subscription disappeared in the meantime.
        """
        await self._http.load(
            "POST",
            f"/subscriptions/{subscription.id}/change",
            json_body={
                "timeframe": "now",
                "add_ons": [{"code": self.seat_add_on_code, "quantity": int(count)}],
            },
        )
        body = await self._http.load("GET", f"/subscriptions/{subscription.id}", allow_not_found=True)
        if body is None:
            return None
        updated = self._parse_subscription(body)
        logger.debug(
            "Recurly subscription %s seats=%s", updated.id, updated.add_on_quantity(self.seat_add_on_code)
        )
        return updated
