"""Deterministic variant assignment using FNV-1a hash.

The same (visitor_id, split_name, weights) triple always yields the same
variant, in any process, so a visitor reconstructed on the next request
lands in the same bucket before the server-side registry is consulted.
"""

from collections.abc import Mapping

from splittrack.core.exceptions import InvalidWeightsError

# FNV-1a constants (32-bit)
FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
MASK_32 = 0xFFFFFFFF


def fnv1a(data: str) -> int:
    """Compute 32-bit FNV-1a hash of a string."""
    h = FNV_OFFSET_BASIS
    for byte in data.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & MASK_32
    return h


def _total_weight(split_name: str, weights: Mapping[str, int]) -> int:
    if not weights:
        raise InvalidWeightsError(split_name, "no variants")
    if any(w < 0 for w in weights.values()):
        raise InvalidWeightsError(split_name, "negative weight")
    total = sum(weights.values())
    if total <= 0:
        raise InvalidWeightsError(split_name, "all weights are zero")
    return total


def calculate_variant(visitor_id: str, split_name: str, weights: Mapping[str, int]) -> str:
    """Assign a visitor to a variant of a split deterministically.

    Uses fnv1a(visitor_id + split_name) % total_weight to pick a bucket,
    then walks the variants in sorted order accumulating weights. The
    first variant whose cumulative weight exceeds the bucket wins, so a
    zero-weight variant is never returned.
    """
    total = _total_weight(split_name, weights)
    bucket = fnv1a(f"{visitor_id}{split_name}") % total

    cumulative = 0
    for variant in sorted(weights):
        cumulative += weights[variant]
        if bucket < cumulative:
            return variant

    # Unreachable: bucket < total == final cumulative weight
    raise InvalidWeightsError(split_name, "weights exhausted")


class VariantCalculator:
    """Object form of ``calculate_variant`` bound to one visitor and split."""

    def __init__(self, visitor_id: str, split_name: str, weights: Mapping[str, int]) -> None:
        self.visitor_id = visitor_id
        self.split_name = split_name
        self.weights = weights

    @property
    def variant(self) -> str:
        return calculate_variant(self.visitor_id, self.split_name, self.weights)
