"""Visitor: the unit of assignment identity.

A ``Visitor`` lives for one unit of work (usually one request). It lazily
pulls the split registry and its own server-side assignments from the
remote client, fills gaps with ``VariantCalculator``, and tracks which
assignments were made during its lifetime so the session can report them.

If either remote fetch fails the visitor goes offline for the rest of its
life: assignments are still computed but never recorded.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any

from splittrack.core.exceptions import UnknownSplitError, VaryStructureError
from splittrack.remote import SERVER_ERRORS
from splittrack.remote.client import TestTrackClient, get_client
from splittrack.services.assignment import VariantCalculator
from splittrack.services.vary import ABConfiguration, VaryDSL

logger = logging.getLogger(__name__)


class Visitor:
    """Assignment state for one visitor.

    Parameters
    ----------
    id : str | None
        Existing visitor id. When omitted a UUID is generated and the
        visitor starts with an empty assignment registry, with no remote
        fetch (a brand-new id cannot have server-side assignments).
    assignment_registry : dict | None
        Pre-loaded assignments, skipping the remote fetch.
    client : TestTrackClient | None
        Remote collaborator. Defaults to the process-wide client.
    """

    def __init__(
        self,
        id: str | None = None,
        assignment_registry: dict[str, str] | None = None,
        *,
        client: TestTrackClient | None = None,
    ) -> None:
        self.id = id
        self._assignment_registry = dict(assignment_registry) if assignment_registry is not None else None
        if self.id is None:
            # Exempting generated ids from the fetch relies on uuid4 never colliding
            self.id = str(uuid.uuid4())
            if self._assignment_registry is None:
                self._assignment_registry = {}
        self._client = client
        self._new_assignments: dict[str, str] = {}
        self._split_registry: dict[str, dict[str, int]] | None = None
        self._split_registry_fetched = False
        self._assignment_registry_fetched = self._assignment_registry is not None
        self._offline = False

    # ------------------------------------------------------------------
    # Lazily-loaded state
    # ------------------------------------------------------------------

    @property
    def client(self) -> TestTrackClient:
        if self._client is None:
            self._client = get_client()
        return self._client

    @property
    def offline(self) -> bool:
        return self._offline

    @property
    def split_registry(self) -> dict[str, dict[str, int]] | None:
        """The global split registry, fetched at most once per visitor."""
        if not self._split_registry_fetched:
            try:
                self._split_registry = self.client.fetch_split_registry()
            except SERVER_ERRORS as exc:
                self._go_offline("split registry", exc)
            self._split_registry_fetched = True
        return self._split_registry

    @property
    def assignment_registry(self) -> dict[str, str] | None:
        """Server-side assignments for this visitor, plus any made locally.

        ``None`` when the registry could not be fetched.
        """
        if not self._assignment_registry_fetched and not self._offline:
            try:
                self._assignment_registry = dict(self.client.fetch_assignment_registry(self.id))
            except SERVER_ERRORS as exc:
                self._go_offline("assignment registry", exc)
            self._assignment_registry_fetched = True
        return self._assignment_registry

    @property
    def new_assignments(self) -> dict[str, str]:
        return self._new_assignments

    def _go_offline(self, what: str, exc: Exception) -> None:
        logger.warning("visitor %s going offline: %s fetch failed: %s", self.id, what, exc)
        self._offline = True

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assignment_for(self, split_name: Any) -> str | None:
        """Return this visitor's variant for ``split_name``.

        Cached assignments win; otherwise the variant is calculated and,
        unless offline, recorded as a new assignment. Returns ``None`` only
        when the split registry itself is unavailable.
        """
        split_name = str(split_name)
        registry = self.assignment_registry
        if registry is not None and split_name in registry:
            return registry[split_name]
        return self._generate_assignment_for(split_name)

    def _generate_assignment_for(self, split_name: str) -> str | None:
        split_registry = self.split_registry
        if split_registry is None:
            return None
        if split_name not in split_registry:
            raise UnknownSplitError(split_name)
        variant = VariantCalculator(self.id, split_name, split_registry[split_name]).variant
        self._assign_to(split_name, variant)
        return variant

    def _assign_to(self, split_name: str, variant: str) -> None:
        if self._offline:
            return
        self._assignment_registry[split_name] = variant
        self._new_assignments[split_name] = variant

    def vary(self, split_name: Any, declare: Callable[[VaryDSL], Any] | None = None) -> Any:
        """Run the branch ``declare`` registers for this visitor's variant.

        ``declare`` receives a ``VaryDSL`` and must register at least one
        ``when`` and exactly one ``default``. If the default runs because
        the assigned variant matched no ``when``, the default variant
        becomes the visitor's assignment.
        """
        split_name = str(split_name)
        if declare is None:
            raise VaryStructureError(split_name, f"must provide block to `vary` for {split_name}")

        dsl = VaryDSL(
            split_name=split_name,
            assigned_variant=self.assignment_for(split_name),
            split_registry=self.split_registry,
        )
        declare(dsl)
        result = dsl.run()
        if dsl.defaulted:
            self._assign_to(split_name, dsl.default_variant)
        return result

    def ab(self, split_name: Any, true_variant: Any = None) -> bool:
        split_name = str(split_name)
        # Read any cached assignment before a split registry failure can take the visitor offline
        self.assignment_for(split_name)
        variants = ABConfiguration(
            split_name=split_name,
            true_variant=true_variant,
            split_registry=self.split_registry,
        ).variants

        def declare(v: VaryDSL) -> None:
            v.when(variants[True], lambda: True)
            v.default(variants[False], lambda: False)

        return self.vary(split_name, declare)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def merge(self, other: Visitor) -> None:
        """Fold a canonical (server-sourced) visitor into this one.

        Takes ``other``'s id, forgets pending assignments the server already
        knows about, and overlays ``other``'s registry on this one's.
        """
        server_registry = other.assignment_registry or {}
        registry = self.assignment_registry
        if registry is None:
            registry = self._assignment_registry = {}

        self.id = other.id
        for split_name in server_registry:
            self._new_assignments.pop(split_name, None)
        registry.update(server_registry)

    def log_in(self, identifier_type: str, value: Any) -> Visitor:
        """Link this visitor to an identifier and adopt the server's visitor.

        If the assignment service cannot be reached the identifier creation
        is deferred to the job queue and this visitor carries on unchanged.
        """
        from splittrack.jobs.identifier import CreateIdentifierJob

        job = CreateIdentifierJob(identifier_type=identifier_type, visitor_id=self.id, value=str(value))
        try:
            remote = job.perform(client=self.client)
        except SERVER_ERRORS as exc:
            logger.warning("deferring identifier creation for visitor %s: %s", self.id, exc)
            job.defer()
            return self

        self.merge(Visitor(id=remote.id, assignment_registry=remote.assignment_registry, client=self._client))
        return self

    def __repr__(self) -> str:
        return f"Visitor(id={self.id!r}, offline={self._offline})"
