"""
Bloom filter for approximate set membership.

A Bloom filter is a bit array of ``m`` bits indexed by ``k`` hash functions. Adding
an item sets its ``k`` bits; a query reports "possibly present" only when all
``k`` bits are set. False positives are possible, false negatives are not, and
a bit once set is never cleared.

The filter is sized from the expected number of items ``n`` and the target
false positive probability ``epsilon``:

    m = ceil(-n * ln(epsilon) / ln(2)^2)
    k = ceil((m / n) * ln(2))

The ``k`` bit positions come from double hashing, ``(h1 + i * step) mod m``, with
``h1`` and ``h2`` drawn from the injected hasher under two different seeds and
``step`` the first value from ``h2 mod m`` upward that is coprime with ``m``, so
the ``k`` positions are distinct whenever ``k <= m``.

References:
    - Bloom, B. H. (1970). Space/time trade-offs in hash coding with allowable errors.
      Communications of the ACM, 13(7), 422-426.
    - Kirsch, A., & Mitzenmacher, M. (2006). Less hashing, same performance:
      building a better Bloom filter.
"""

import array
import logging
import math
import sys
from typing import Any, Dict, Iterator, List, Optional, TypeVar

from probsketch.core.base import MembershipTester
from probsketch.core.hash import Hasher

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being processed

_LN2 = math.log(2)


def optimal_bit_size(n: int, epsilon: float) -> int:
    """
    Bit array size for ``n`` items at false positive probability ``epsilon``.

    Raises:
        ValueError: If n < 1 or epsilon is not strictly between 0 and 1.
    """
    if n < 1:
        raise ValueError(f"Expected number of items must be at least 1, got {n}")
    if not (0 < epsilon < 1):
        raise ValueError(
            f"False positive rate must be strictly between 0 and 1, got {epsilon}"
        )
    return math.ceil(-n * math.log(epsilon) / (_LN2 * _LN2))


def optimal_hash_count(m: int, n: int) -> int:
    """
    Number of hash positions that minimizes the false positive rate for ``m`` bits
    holding ``n`` items.

    Raises:
        ValueError: If n < 1 (the formula divides by n).
    """
    if n < 1:
        raise ValueError(f"Expected number of items must be at least 1, got {n}")
    return math.ceil((m / n) * _LN2)


class BloomFilter(MembershipTester[T]):
    """
    Standard Bloom filter.

    Example:
        bloom = BloomFilter(expected_items=1000, false_positive_rate=0.01)
        bloom.add("apple")
        bloom.contains("apple")   # True
        "orange" in bloom         # False (with probability ~99%)

    The filter is not thread-safe: concurrent ``contains`` calls are fine, but
    ``add`` must be serialized by the caller.
    """

    def __init__(
        self,
        expected_items: int = 10000,
        false_positive_rate: float = 0.01,
        hasher: Optional[Hasher] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize an empty Bloom filter.

        Args:
            expected_items: Expected number of distinct items (n), at least 1.
            false_positive_rate: Target false positive probability (epsilon),
                                 strictly between 0 and 1.
            hasher: Callable ``hasher(item, seed) -> int``. Defaults to
                    murmurhash3_32.
            seed: Base seed for the two hashes used in double hashing.

        Raises:
            ValueError: If expected_items < 1 or false_positive_rate is
                        outside (0, 1).
            TypeError: If hasher is not callable.
        """
        super().__init__(hasher=hasher, seed=seed)

        self._bit_size = optimal_bit_size(expected_items, false_positive_rate)
        self._hash_count = optimal_hash_count(self._bit_size, expected_items)
        self._expected_items = expected_items
        self._false_positive_rate = false_positive_rate

        # One bit per position, packed eight to a byte
        self._bytes = array.array("B", bytes((self._bit_size + 7) // 8))

        self._saturation_warned = False

        logger.debug(
            "BloomFilter created: n=%d epsilon=%g m=%d k=%d",
            expected_items,
            false_positive_rate,
            self._bit_size,
            self._hash_count,
        )

    def size(self) -> int:
        """Number of bits in the filter (m)."""
        return self._bit_size

    def hash_count(self) -> int:
        """Number of bit positions per item (k)."""
        return self._hash_count

    def epsilon(self) -> float:
        """The configured target false positive probability."""
        return self._false_positive_rate

    @property
    def expected_items(self) -> int:
        return self._expected_items

    def _position_step(self, h2: int) -> int:
        """
        Stride between bit positions, coprime with m.

        A stride of 0 would send all k positions to one bit, and one sharing a
        factor with m revisits bits after m / gcd positions.
        """
        step = h2 % self._bit_size or 1
        while math.gcd(step, self._bit_size) != 1:
            step += 1
        return step

    def _iter_bit_positions(self, item: T) -> Iterator[int]:
        position = self._hasher(item, self._seed) % self._bit_size
        step = self._position_step(self._hasher(item, self._seed + 1))
        for _ in range(self._hash_count):
            yield position
            position = (position + step) % self._bit_size

    def _get_bit_positions(self, item: T) -> List[int]:
        return list(self._iter_bit_positions(item))

    def _set_bit(self, position: int) -> None:
        self._bytes[position >> 3] |= 1 << (position & 7)

    def _test_bit(self, position: int) -> bool:
        return bool(self._bytes[position >> 3] & (1 << (position & 7)))

    def add(self, item: T) -> None:
        """
        Add an item to the filter.

        Args:
            item: The item to add.
        """
        super().add(item)

        for position in self._get_bit_positions(item):
            self._set_bit(position)

        if self._items_processed > self._expected_items and not self._saturation_warned:
            self._saturation_warned = True
            logger.warning(
                "BloomFilter received more than %d expected items; false positive "
                "rate will exceed %g",
                self._expected_items,
                self._false_positive_rate,
            )

    def contains(self, item: T) -> bool:
        """
        Test whether an item may be in the filter.

        Returns:
            False if the item was definitely never added, True otherwise.
        """
        return all(self._test_bit(p) for p in self._iter_bit_positions(item))

    def merge(self, other: "BloomFilter[T]") -> "BloomFilter[T]":
        """
        Union of two filters built with identical parameters.

        The result contains every item of both inputs; its false positive rate
        is that of a single filter holding all of them.

        Raises:
            TypeError: If other is not a BloomFilter.
            ValueError: If bit size, hash count, hasher or seed differ.
        """
        self._check_same_type(other)
        if self._bit_size != other._bit_size or self._hash_count != other._hash_count:
            raise ValueError(
                f"Cannot merge Bloom filters with different parameters: "
                f"(m={self._bit_size}, k={self._hash_count}) and "
                f"(m={other._bit_size}, k={other._hash_count})"
            )
        self._check_same_hashing(other)

        result = BloomFilter[T](
            expected_items=self._expected_items,
            false_positive_rate=self._false_positive_rate,
            hasher=self._hasher,
            seed=self._seed,
        )
        result._bytes = array.array(
            "B", (a | b for a, b in zip(self._bytes, other._bytes))
        )
        result._items_processed = self._combine_items_processed(other)
        return result

    def _count_set_bits(self) -> int:
        return sum(bin(byte).count("1") for byte in self._bytes)

    def fill_ratio(self) -> float:
        """Fraction of the m bits currently set."""
        return self._count_set_bits() / self._bit_size

    def false_positive_probability(self) -> float:
        """
        Current false positive probability estimated from the fill ratio.

        Unlike epsilon(), this reflects the items actually added:
        ``fill_ratio ** k``.
        """
        return min(1.0, self.fill_ratio() ** self._hash_count)

    def estimate_cardinality(self) -> int:
        """
        Estimate the number of distinct items from the fill ratio.

        Uses ``n ~= -m * ln(1 - X/m) / k`` where X is the number of set bits.
        The estimate is capped by the number of items processed and degrades
        as the filter saturates.
        """
        set_bits = self._count_set_bits()
        if set_bits == 0:
            return 0
        if set_bits >= self._bit_size:
            return self._items_processed

        estimate = -self._bit_size * math.log(1.0 - set_bits / self._bit_size)
        estimate /= self._hash_count
        return min(int(round(estimate)), self._items_processed)

    def is_empty(self) -> bool:
        """True if no bit has been set."""
        return not any(self._bytes)

    def estimate_size(self) -> int:
        return super().estimate_size() + sys.getsizeof(self._bytes)

    def error_bounds(self) -> Dict[str, Any]:
        """
        False positive guarantees for the current configuration.

        Returns:
            target_fpp: the configured epsilon
            current_theoretical_fpp: ``(1 - e^(-k*n/m))^k`` for the items added
            so far, present once at least one item was added
        """
        bounds = super().error_bounds()
        bounds["target_fpp"] = self._false_positive_rate

        if self._items_processed > 0:
            exponent = -(self._hash_count * self._items_processed) / self._bit_size
            bounds["current_theoretical_fpp"] = min(
                1.0, (1.0 - math.exp(exponent)) ** self._hash_count
            )

        return bounds

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        set_bits = self._count_set_bits()
        stats.update(
            {
                "expected_items": self._expected_items,
                "false_positive_rate": self._false_positive_rate,
                "bit_size": self._bit_size,
                "hash_count": self._hash_count,
                "set_bits": set_bits,
                "fill_ratio": set_bits / self._bit_size,
                "estimated_unique_items": self.estimate_cardinality(),
                "current_fpp": self.false_positive_probability(),
            }
        )
        return stats

    def __repr__(self) -> str:
        return (
            f"BloomFilter(expected_items={self._expected_items}, "
            f"false_positive_rate={self._false_positive_rate}, "
            f"size={self._bit_size}, hash_count={self._hash_count})"
        )
