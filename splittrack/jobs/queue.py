"""Durable at-least-once queue for remote calls that could not be made inline.

``enqueue`` stores a job row; ``drain`` performs every due job, retrying
failures with exponential backoff until ``JOB_MAX_ATTEMPTS`` is reached.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from splittrack.core.config import settings
from splittrack.jobs.alias import CreateAliasJob
from splittrack.jobs.assignment import NotifyAssignmentJob
from splittrack.jobs.base import Job
from splittrack.jobs.identifier import CreateIdentifierJob
from splittrack.models.deferred_job import DeferredJob
from splittrack.remote.analytics import AnalyticsClient
from splittrack.remote.client import TestTrackClient

logger = logging.getLogger(__name__)

JOB_TYPES: dict[str, type[Job]] = {
    job_type.kind: job_type for job_type in (CreateIdentifierJob, NotifyAssignmentJob, CreateAliasJob)
}


@dataclass
class DrainResult:
    performed: int = 0
    retried: int = 0
    failed: int = 0


def enqueue(db: Session, kind: str, payload: dict[str, Any], run_at: datetime | None = None) -> DeferredJob:
    """Add a job row to the session. The caller owns the commit."""
    job = DeferredJob(
        kind=kind,
        payload=payload,
        attempts=0,
        run_at=run_at or datetime.now(UTC),
    )
    db.add(job)
    db.flush()
    logger.info("deferred %s job %s", kind, job.id)
    return job


def default_handlers(
    client: TestTrackClient | None = None,
    analytics: AnalyticsClient | None = None,
) -> dict[str, Callable[[Job], Any]]:
    return {
        CreateIdentifierJob.kind: lambda job: job.perform(client=client),
        NotifyAssignmentJob.kind: lambda job: job.perform(client=client, analytics=analytics),
        CreateAliasJob.kind: lambda job: job.perform(analytics=analytics),
    }


def retry_delay(attempts: int) -> timedelta:
    return timedelta(seconds=settings.JOB_RETRY_BASE_SECONDS * 2 ** attempts)


def drain(
    db: Session,
    handlers: dict[str, Callable[[Job], Any]] | None = None,
    now: datetime | None = None,
    limit: int = 100,
) -> DrainResult:
    """Perform due jobs once each.

    Successful jobs are deleted. Failed jobs are rescheduled, or marked
    failed once they have used up ``JOB_MAX_ATTEMPTS``.
    """
    handlers = handlers if handlers is not None else default_handlers()
    now = now or datetime.now(UTC)
    result = DrainResult()

    rows = db.execute(
        select(DeferredJob)
        .where(DeferredJob.run_at <= now, DeferredJob.failed_at.is_(None))
        .order_by(DeferredJob.run_at)
        .limit(limit)
    ).scalars().all()

    for row in rows:
        try:
            job_type = JOB_TYPES.get(row.kind)
            handler = handlers.get(row.kind)
            if job_type is None or handler is None:
                raise LookupError(f"no handler for job kind {row.kind!r}")
            handler(job_type.from_payload(row.payload))
        except Exception as exc:
            logger.exception("deferred %s job %s failed (attempt %d)", row.kind, row.id, row.attempts + 1)
            row.attempts += 1
            row.last_error = f"{type(exc).__name__}: {exc}"
            if row.attempts >= settings.JOB_MAX_ATTEMPTS:
                row.failed_at = now
                result.failed += 1
            else:
                row.run_at = now + retry_delay(row.attempts)
                result.retried += 1
        else:
            db.delete(row)
            result.performed += 1

    db.flush()
    logger.info(
        "drained deferred jobs: %d performed, %d retried, %d failed",
        result.performed,
        result.retried,
        result.failed,
    )
    return result
