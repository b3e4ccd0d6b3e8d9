"""
Algorithm implementations for probsketch.
"""

from probsketch.algorithms.bloom import BloomFilter
from probsketch.algorithms.hyperloglog import HyperLogLog

__all__ = [
    "BloomFilter",
    "HyperLogLog",
]
