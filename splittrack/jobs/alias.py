from __future__ import annotations

from splittrack.jobs.base import Job
from splittrack.remote.analytics import AnalyticsClient


class CreateAliasJob(Job):
    """Alias a visitor id onto an analytics id that already exists."""

    kind = "alias"
    fields = ("existing_id", "alias_id")
    required = fields

    def perform(self, analytics: AnalyticsClient | None = None) -> None:
        analytics = analytics or AnalyticsClient()
        analytics.alias(self.alias_id, self.existing_id)
