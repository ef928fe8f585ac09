"""HTTP client for the remote assignment service.

One ``TestTrackClient`` is shared per process (see ``get_client``). The
split registry is global, so it is cached here for
``SPLIT_REGISTRY_TTL_SECONDS`` across all visitors; per-visitor data is
never cached at this level.
"""

from __future__ import annotations

import logging
import threading
import time

import httpx

from splittrack.core.config import settings
from splittrack.remote.schemas import (
    AssignmentIn,
    IdentifierIn,
    IdentifierOut,
    RemoteVisitor,
    SplitRegistryOut,
)

logger = logging.getLogger(__name__)


class TestTrackClient:
    """Synchronous client for split registry, visitor, identifier and
    assignment endpoints.

    Parameters
    ----------
    base_url : str | None
        Service root. Defaults to ``settings.TEST_TRACK_API_URL``.
    timeout : float | None
        Per-request timeout in seconds.
    transport : httpx.BaseTransport | None
        Custom transport (tests pass ``httpx.MockTransport``).
    split_registry_ttl : int | None
        Seconds to reuse a fetched split registry; 0 disables caching.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        split_registry_ttl: int | None = None,
    ) -> None:
        self._http = httpx.Client(
            base_url=base_url or settings.TEST_TRACK_API_URL,
            timeout=timeout if timeout is not None else settings.TEST_TRACK_TIMEOUT_SECONDS,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self.split_registry_ttl = (
            split_registry_ttl if split_registry_ttl is not None else settings.SPLIT_REGISTRY_TTL_SECONDS
        )
        self._split_registry: dict[str, dict[str, int]] | None = None
        self._split_registry_fetched_at = 0.0
        self._lock = threading.Lock()

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_split_registry(self) -> dict[str, dict[str, int]]:
        with self._lock:
            now = time.monotonic()
            if self._split_registry is not None and now - self._split_registry_fetched_at < self.split_registry_ttl:
                return self._split_registry

            resp = self._http.get("/api/v1/split_registry")
            resp.raise_for_status()
            registry = SplitRegistryOut.model_validate(_json(resp)).splits
            logger.debug("fetched split registry with %d splits", len(registry))

            self._split_registry = registry
            self._split_registry_fetched_at = now
            return registry

    def fetch_assignment_registry(self, visitor_id: str) -> dict[str, str]:
        resp = self._http.get(f"/api/v1/visitors/{visitor_id}")
        resp.raise_for_status()
        return RemoteVisitor.model_validate(_json(resp)).assignment_registry

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_identifier(self, identifier_type: str, visitor_id: str, value: str) -> RemoteVisitor:
        body = IdentifierIn(identifier_type=identifier_type, visitor_id=visitor_id, value=value)
        resp = self._http.post("/api/v1/identifier", json=body.model_dump())
        resp.raise_for_status()
        return IdentifierOut.model_validate(_json(resp)).visitor

    def create_assignment(self, visitor_id: str, split_name: str, variant: str) -> None:
        body = AssignmentIn(visitor_id=visitor_id, split_name=split_name, variant=variant)
        resp = self._http.post("/api/v1/assignment", json=body.model_dump())
        resp.raise_for_status()


def _json(resp: httpx.Response):
    """Decode a response body; a malformed body counts as a transport failure."""
    try:
        return resp.json()
    except ValueError as exc:
        raise httpx.DecodingError(f"malformed JSON from {resp.request.url}: {exc}", request=resp.request) from exc


_client: TestTrackClient | None = None
_client_lock = threading.Lock()


def get_client() -> TestTrackClient:
    """Return the process-wide client, creating it from settings on first use."""
    global _client
    with _client_lock:
        if _client is None:
            _client = TestTrackClient()
        return _client
