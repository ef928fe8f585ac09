from splittrack.services.assignment import VariantCalculator, calculate_variant, fnv1a
from splittrack.services.vary import ABConfiguration, VaryDSL
from splittrack.services.visitor import Visitor

__all__ = [
    "ABConfiguration",
    "VariantCalculator",
    "VaryDSL",
    "Visitor",
    "calculate_variant",
    "fnv1a",
]
