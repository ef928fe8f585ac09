"""Per-request visitor session.

``SplitTrackSession`` owns the visitor for one request: it reads the
visitor id cookie, builds the ``Visitor`` on first use, links identities on
log-in, and reports new assignments once the response is ready.
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import Response

from splittrack.core import database
from splittrack.core.config import settings
from splittrack.jobs.alias import CreateAliasJob
from splittrack.jobs.assignment import NotifyAssignmentJob
from splittrack.remote import SERVER_ERRORS
from splittrack.remote.analytics import AnalyticsClient
from splittrack.remote.client import TestTrackClient
from splittrack.services.visitor import Visitor

logger = logging.getLogger(__name__)


class SplitTrackSession:
    def __init__(
        self,
        request: Request,
        client: TestTrackClient | None = None,
        analytics: AnalyticsClient | None = None,
    ) -> None:
        self.request = request
        self.client = client
        self.analytics = analytics
        self._visitor: Visitor | None = None
        self._aliases: list[CreateAliasJob] = []

    @property
    def visitor_id_cookie(self) -> str | None:
        return self.request.cookies.get(settings.COOKIE_NAME) or None

    @property
    def visitor(self) -> Visitor:
        if self._visitor is None:
            self._visitor = Visitor(id=self.visitor_id_cookie, client=self.client)
        return self._visitor

    def log_in(self, identifier_type: str, value) -> Visitor:
        """Identify the current visitor, adopting the server's canonical visitor."""
        previous_id = self.visitor.id
        self.visitor.log_in(identifier_type, value)
        if self.visitor.id != previous_id:
            self._aliases.append(CreateAliasJob(existing_id=previous_id, alias_id=self.visitor.id))
        return self.visitor

    # ------------------------------------------------------------------
    # End of request
    # ------------------------------------------------------------------

    def set_cookie(self, response: Response) -> None:
        response.set_cookie(
            settings.COOKIE_NAME,
            self.visitor.id,
            max_age=settings.COOKIE_MAX_AGE_SECONDS,
            domain=settings.COOKIE_DOMAIN,
            secure=self.request.url.scheme == "https",
            httponly=False,
            samesite="lax",
        )

    def flush(self) -> None:
        """Report new assignments and aliases.

        Assignments are sent inline until the first failure; that one and
        the rest go to the job queue. Aliases always go through the queue.
        """
        if self._visitor is None:
            return

        deferred = list(self._aliases)
        reachable = True
        for split_name, variant in self._visitor.new_assignments.items():
            job = NotifyAssignmentJob(visitor_id=self._visitor.id, split_name=split_name, variant=variant)
            if not reachable:
                deferred.append(job)
                continue
            try:
                job.perform(client=self.client, analytics=self.analytics)
            except SERVER_ERRORS as exc:
                logger.warning(
                    "deferring assignments for visitor %s after %s failed: %s",
                    self._visitor.id,
                    split_name,
                    exc,
                )
                reachable = False
                deferred.append(job)

        if deferred:
            self._defer(deferred)
        self._aliases.clear()

    def _defer(self, jobs) -> None:
        with database.SessionLocal() as db, db.begin():
            for job in jobs:
                job.defer(db)
