"""Analytics delivery: identity aliases and assignment events."""

from __future__ import annotations

import logging

import httpx

from splittrack.core.config import settings
from splittrack.core.exceptions import RemoteError
from splittrack.remote.schemas import AliasEvent

logger = logging.getLogger(__name__)


class AnalyticsClient:
    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self.url = url or settings.ANALYTICS_URL
        self.token = token if token is not None else settings.ANALYTICS_TOKEN
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.TEST_TRACK_TIMEOUT_SECONDS

    def _post(self, payload: dict) -> httpx.Response:
        with httpx.Client(transport=self._transport, timeout=self._timeout) as client:
            return client.post(self.url, json=payload)

    def alias(self, alias_id: str, existing_id: str) -> None:
        """Tell analytics that ``alias_id`` is the same person as ``existing_id``."""
        event = AliasEvent(
            properties={"distinct_id": existing_id, "alias": alias_id, "token": self.token},
        )
        failure = f"analytics alias failed for existing_id: {existing_id}, alias_id: {alias_id}"
        try:
            resp = self._post(event.model_dump())
        except httpx.HTTPError as exc:
            raise RemoteError(failure) from exc
        if resp.is_error:
            raise RemoteError(failure)
        logger.info("aliased %s to %s", alias_id, existing_id)

    def track_assignment(self, visitor_id: str, split_name: str, variant: str) -> None:
        resp = self._post(
            {
                "event": "SplitAssigned",
                "properties": {
                    "distinct_id": visitor_id,
                    "split_name": split_name,
                    "variant": variant,
                    "token": self.token,
                },
            }
        )
        resp.raise_for_status()
