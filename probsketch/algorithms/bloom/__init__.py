"""
Bloom filter implementation for probsketch.

Space-efficient approximate set membership with a tunable false positive rate
and no false negatives.
"""

from probsketch.algorithms.bloom.base import (
    BloomFilter,
    optimal_bit_size,
    optimal_hash_count,
)

__all__ = [
    "BloomFilter",
    "optimal_bit_size",
    "optimal_hash_count",
]
