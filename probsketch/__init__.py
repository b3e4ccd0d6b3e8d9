"""
probsketch - Probabilistic summaries for data streams

probsketch provides two fixed-memory sketches over streams of hashable items:
a Bloom filter for approximate membership and a HyperLogLog for approximate
distinct counting. Hashing is pluggable; pure-Python MurmurHash3 is the default.
"""

import logging

__version__ = "0.1.0"

from probsketch.algorithms.bloom import BloomFilter
from probsketch.algorithms.hyperloglog import HyperLogLog
from probsketch.core.base import (
    CardinalityEstimator,
    MembershipTester,
    StreamSummary,
)
from probsketch.core.hash import Hasher, fnv1a_32, murmurhash3_32

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Core base classes
    "StreamSummary",
    "MembershipTester",
    "CardinalityEstimator",
    # Sketches
    "BloomFilter",
    "HyperLogLog",
    # Hashing
    "Hasher",
    "murmurhash3_32",
    "fnv1a_32",
]
