from __future__ import annotations

from splittrack.jobs.base import Job
from splittrack.remote.client import TestTrackClient, get_client
from splittrack.remote.schemas import RemoteVisitor


class CreateIdentifierJob(Job):
    """Link a visitor id to an external identifier (e.g. a user id)."""

    kind = "identifier"
    fields = ("identifier_type", "visitor_id", "value")
    required = fields

    def perform(self, client: TestTrackClient | None = None) -> RemoteVisitor:
        client = client or get_client()
        return client.create_identifier(
            identifier_type=self.identifier_type,
            visitor_id=self.visitor_id,
            value=str(self.value),
        )
