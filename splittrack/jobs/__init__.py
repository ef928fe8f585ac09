"""Deferred delivery of identifier, assignment and alias calls."""

from splittrack.jobs.alias import CreateAliasJob
from splittrack.jobs.assignment import NotifyAssignmentJob
from splittrack.jobs.identifier import CreateIdentifierJob
from splittrack.jobs.queue import DrainResult, drain, enqueue

__all__ = [
    "CreateAliasJob",
    "NotifyAssignmentJob",
    "CreateIdentifierJob",
    "DrainResult",
    "drain",
    "enqueue",
]
