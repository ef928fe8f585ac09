"""Shared shape for deferred jobs.

A job is a small value object that knows how to perform one remote call
and how to serialize itself into a ``DeferredJob`` row when that call has
to wait for the worker.
"""

from __future__ import annotations

from typing import Any, ClassVar

from sqlalchemy.orm import Session

from splittrack.core.exceptions import JobError


class Job:
    kind: ClassVar[str]
    fields: ClassVar[tuple[str, ...]]
    required: ClassVar[tuple[str, ...]] = ()

    def __init__(self, **opts: Any) -> None:
        unknown = sorted(set(opts) - set(self.fields))
        if unknown:
            raise JobError(f"unknown opts: {', '.join(unknown)}")
        for name in self.fields:
            setattr(self, name, opts.get(name))
        for name in self.required:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise JobError(f"{name} must be present")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Job:
        return cls(**payload)

    def to_payload(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.fields}

    def perform(self, **collaborators: Any) -> Any:
        raise NotImplementedError

    def defer(self, db: Session | None = None):
        """Persist this job for the worker. Opens its own session when none is given."""
        from splittrack.core import database
        from splittrack.jobs.queue import enqueue

        if db is not None:
            return enqueue(db, self.kind, self.to_payload())
        with database.SessionLocal() as own_db, own_db.begin():
            return enqueue(own_db, self.kind, self.to_payload())

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.to_payload().items())
        return f"{type(self).__name__}({args})"
