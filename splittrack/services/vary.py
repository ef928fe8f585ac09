"""Branch declaration for a single split.

``VaryDSL`` collects ``when``/``default`` branches from caller code, checks
that the declaration is well formed, and runs exactly one branch for the
visitor's resolved variant. ``ABConfiguration`` describes the two-branch
boolean case used by ``Visitor.ab``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from splittrack.core.exceptions import VaryStructureError

logger = logging.getLogger(__name__)

Handler = Callable[[], Any]


class VaryDSL:
    """One-shot builder for the branches of one split.

    Parameters
    ----------
    split_name : str
        The split being varied.
    assigned_variant : str | None
        The visitor's already-resolved variant. ``None`` means no assignment
        could be made and the default branch will run.
    split_registry : Mapping | None
        Optional split registry, used only to warn about declared variants
        that the split does not define.

    Example
    -------
    >>> dsl = VaryDSL(split_name="blue_button", assigned_variant="true")
    >>> dsl.when("true", lambda: ".blue")
    >>> dsl.default("false", lambda: ".red")
    >>> dsl.run()
    '.blue'
    """

    def __init__(
        self,
        split_name: str,
        assigned_variant: str | None,
        split_registry: Mapping[str, Mapping[str, int]] | None = None,
    ) -> None:
        self.split_name = split_name
        self.assigned_variant = assigned_variant
        self._split_variants = None
        if split_registry is not None and split_name in split_registry:
            self._split_variants = set(split_registry[split_name])
        self._whens: dict[str, Handler] = {}
        self._defaults: list[tuple[str, Handler]] = []
        self._defaulted = False
        self._ran = False

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def when(self, variant: Any, handler: Handler | None = None):
        """Declare the branch for ``variant``.

        Can be called directly with a handler or used as a decorator.
        """
        if handler is None:
            def decorator(fn: Handler) -> Handler:
                self.add_when(variant, fn)
                return fn

            return decorator
        self.add_when(variant, handler)
        return None

    def default(self, variant: Any, handler: Handler | None = None):
        """Declare the fallback branch; its variant is recorded if it runs."""
        if handler is None:
            def decorator(fn: Handler) -> Handler:
                self.set_default(variant, fn)
                return fn

            return decorator
        self.set_default(variant, handler)
        return None

    def add_when(self, variant: Any, handler: Handler) -> None:
        variant = self._check_variant(variant)
        if variant in self._whens:
            logger.warning("split %s declares `when` %s more than once", self.split_name, variant)
        self._whens.setdefault(variant, handler)

    def set_default(self, variant: Any, handler: Handler) -> None:
        self._defaults.append((self._check_variant(variant), handler))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @property
    def defaulted(self) -> bool:
        return self._defaulted

    @property
    def default_variant(self) -> str | None:
        if not self._defaults:
            return None
        return self._defaults[0][0]

    def run(self) -> Any:
        """Validate the declaration and run the matching branch once."""
        if self._ran:
            raise VaryStructureError(self.split_name, f"`vary` for {self.split_name} has already run")
        self._validate()
        self._ran = True

        handler = self._whens.get(self.assigned_variant) if self.assigned_variant is not None else None
        if handler is not None:
            return handler()

        default_variant, default_handler = self._defaults[0]
        # Landing on the default variant itself is a match, not a fallback
        self._defaulted = self.assigned_variant != default_variant
        return default_handler()

    def _validate(self) -> None:
        if not self._whens:
            raise VaryStructureError(self.split_name, "must provide at least one `when`")
        if len(self._defaults) > 1:
            raise VaryStructureError(self.split_name, "cannot provide more than one `default`")
        if not self._defaults:
            raise VaryStructureError(self.split_name, "must provide exactly one `default`")

    def _check_variant(self, variant: Any) -> str:
        variant = str(variant)
        if self._split_variants is not None and variant not in self._split_variants:
            logger.warning(
                "split %s has no variant %s; configured variants are %s",
                self.split_name,
                variant,
                sorted(self._split_variants),
            )
        return variant


class ABConfiguration:
    """Variant labels for a boolean split.

    The true branch uses ``true_variant`` (``"true"`` unless a custom label
    is given); the false branch is always ``"false"``.
    """

    def __init__(
        self,
        split_name: str,
        true_variant: Any = None,
        split_registry: Mapping[str, Mapping[str, int]] | None = None,
    ) -> None:
        self.split_name = split_name
        self.true_variant = str(true_variant) if true_variant is not None else "true"
        self.split_registry = split_registry

    @property
    def variants(self) -> dict[bool, str]:
        split_variants = (self.split_registry or {}).get(self.split_name)
        if split_variants is not None and len(split_variants) > 2:
            logger.warning(
                "`ab` called on split %s which is configured with more than 2 variants",
                self.split_name,
            )
        return {True: self.true_variant, False: "false"}
