"""
Core functionality for probsketch.
"""

from probsketch.core.base import (
    CardinalityEstimator,
    MembershipTester,
    StreamSummary,
)
from probsketch.core.hash import Hasher, fnv1a_32, key_to_bytes, murmurhash3_32

__all__ = [
    # Base classes
    "StreamSummary",
    "MembershipTester",
    "CardinalityEstimator",
    # Hashing
    "Hasher",
    "murmurhash3_32",
    "fnv1a_32",
    "key_to_bytes",
]
