# src/screencast_tasks/services/http.py

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..core.errors import CollaboratorError

logger = logging.getLogger(__name__)


def make_timeout(seconds: float) -> httpx.Timeout:
    """One overall budget per request; connecting gets a shorter slice of it."""
    total = max(1.0, float(seconds))
    return httpx.Timeout(total, connect=min(5.0, total))


class HttpLoader:
    """
    Thin request/response helper shared by the service clients.

    load(...) performs one request and returns the decoded JSON body
    (or None for an empty body). Transport errors, timeouts, non-2xx
    statuses and undecodable bodies raise CollaboratorError tagged with the
    service name.
    """

    def __init__(
        self,
        service: str,
        *,
        base_url: str,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.service = service
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            auth=auth,
            timeout=make_timeout(timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def fail(self, message: str) -> CollaboratorError:
        return CollaboratorError(self.service, message)

    async def load(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        allow_not_found: bool = False,
    ) -> Any | None:
        try:
            response = await self._client.request(method, path, params=params, json=json_body)
        except httpx.TimeoutException as exc:
            raise self.fail(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise self.fail(f"{method} {path} failed: {exc}") from exc

        if allow_not_found and response.status_code == 404:
            logger.debug("%s %s %s -> 404", self.service, method, path)
            return None

        if response.is_error:
            raise self.fail(f"{method} {path} returned {response.status_code}: {response.text[:200]}")

        logger.debug("%s %s %s -> %s", self.service, method, path, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise self.fail(f"{method} {path} returned invalid JSON") from exc
