"""Deterministic split-test assignment for visitors."""

from splittrack.core.exceptions import (
    ConfigurationError,
    InvalidWeightsError,
    SplitTrackError,
    UnknownSplitError,
    VaryStructureError,
)
from splittrack.services import ABConfiguration, VariantCalculator, VaryDSL, Visitor, calculate_variant

__version__ = "0.1.0"

__all__ = [
    "ABConfiguration",
    "ConfigurationError",
    "InvalidWeightsError",
    "SplitTrackError",
    "UnknownSplitError",
    "VariantCalculator",
    "VaryDSL",
    "VaryStructureError",
    "Visitor",
    "calculate_variant",
]
