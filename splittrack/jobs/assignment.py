from __future__ import annotations

from splittrack.jobs.base import Job
from splittrack.remote.analytics import AnalyticsClient
from splittrack.remote.client import TestTrackClient, get_client


class NotifyAssignmentJob(Job):
    """Report one new assignment to the assignment service and analytics."""

    kind = "assignment"
    fields = ("visitor_id", "split_name", "variant")
    required = fields

    def perform(
        self,
        client: TestTrackClient | None = None,
        analytics: AnalyticsClient | None = None,
    ) -> None:
        client = client or get_client()
        client.create_assignment(
            visitor_id=self.visitor_id,
            split_name=self.split_name,
            variant=self.variant,
        )
        if analytics is not None:
            analytics.track_assignment(self.visitor_id, self.split_name, self.variant)
