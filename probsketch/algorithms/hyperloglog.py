"""
HyperLogLog cardinality estimator.

Each item is hashed to 32 bits. The low ``p`` bits pick one of ``m = 2^p``
registers; the remaining bits are shifted to the top of the word and the
register keeps the largest ``leading_zeros + 1`` it has seen. The harmonic mean
of ``2^register`` across registers, scaled by ``alpha * m^2``, estimates the
number of distinct items with a standard error of about ``1.04 / sqrt(m)``.

For common use cases:
- p=10: 1 KB of registers, ~3.25% error (default)
- p=12: 4 KB of registers, ~1.62% error
- p=14: 16 KB of registers, ~0.81% error
- p=16: 64 KB of registers, ~0.40% error

The index bits stay in the hash word when it is shifted left by p, so only
the 32 - 2p bits between them and the top of the word vary independently of
the register. Above p=10 that window is narrow enough to bias estimates in
the millions; keep p at 10 or below when counting that high.

References:
    - Flajolet, P., Fusy, E., Gandouet, O., & Meunier, F. (2007).
      HyperLogLog: the analysis of a near-optimal cardinality estimation algorithm.
"""

import array
import logging
import math
import sys
from typing import Any, Dict, List, Optional, TypeVar

from probsketch.core.base import CardinalityEstimator
from probsketch.core.hash import MASK_32, Hasher

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being processed

HASH_BITS = 32
_TWO_32 = float(1 << HASH_BITS)

# Range covered by the published alpha constants
ALPHA_MIN_PRECISION = 4
ALPHA_MAX_PRECISION = 16

# Hard limits: p=0 underflows the sentinel shift, p=32 leaves no rank bits
MIN_PRECISION = 1
MAX_PRECISION = HASH_BITS - 1


def alpha(precision: int) -> float:
    """
    Bias-correction constant for ``2^precision`` registers.

    Precision is clamped to [4, 16] before the lookup.
    """
    p = min(max(precision, ALPHA_MIN_PRECISION), ALPHA_MAX_PRECISION)
    if p == 4:
        return 0.673
    if p == 5:
        return 0.697
    if p == 6:
        return 0.709
    return 0.7213 / (1.0 + 1.079 / (1 << p))


def linear_counting(m: int, zeros: int) -> float:
    """
    Small-range estimate from the number of empty registers: ``m * ln(m / V)``.
    """
    return m * math.log(m / zeros)


def _count_leading_zeros(x: int, bits: int = HASH_BITS) -> int:
    """Leading zeros of x viewed as a ``bits``-wide unsigned integer."""
    if x == 0:
        return bits
    return bits - x.bit_length()


class HyperLogLog(CardinalityEstimator[T]):
    """
    HyperLogLog for distinct counting over a data stream.

    Example:
        hll = HyperLogLog(precision=12)
        for user in stream:
            hll.add(user)
        hll.count()   # float estimate

    ``count()`` is recomputed from the registers on every call. The estimator
    is not thread-safe; ``add`` must be serialized by the caller.
    """

    def __init__(
        self,
        precision: int = 10,
        hasher: Optional[Hasher] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize an empty HyperLogLog.

        Args:
            precision: Number of hash bits used to select a register (p).
                       Must be in [1, 31]; values outside [4, 16] work but
                       fall outside the range the alpha constants were
                       derived for.
            hasher: Callable ``hasher(item, seed) -> int``. Only the low 32
                    bits of its output are used. Defaults to murmurhash3_32.
            seed: Seed passed to the hasher.

        Raises:
            ValueError: If precision is outside [1, 31].
            TypeError: If hasher is not callable.
        """
        super().__init__(hasher=hasher, seed=seed)

        if not MIN_PRECISION <= precision <= MAX_PRECISION:
            raise ValueError(
                f"Precision must be between {MIN_PRECISION} and {MAX_PRECISION}, "
                f"got {precision}"
            )
        if not ALPHA_MIN_PRECISION <= precision <= ALPHA_MAX_PRECISION:
            logger.warning(
                "HyperLogLog precision %d is outside [%d, %d]; alpha is clamped "
                "and estimates may be biased",
                precision,
                ALPHA_MIN_PRECISION,
                ALPHA_MAX_PRECISION,
            )

        self._precision = precision
        self._m = 1 << precision
        self._alpha = alpha(precision)
        self._index_mask = self._m - 1
        # Guarantees a one bit within the low 32 once the hash is shifted by p
        self._sentinel = 1 << (precision - 1)

        # A rank never exceeds 33 - p, so one byte per register is plenty
        self._registers = array.array("B", bytes(self._m))

        logger.debug(
            "HyperLogLog created: p=%d registers=%d alpha=%.6f",
            precision,
            self._m,
            self._alpha,
        )

    @classmethod
    def with_hasher(
        cls, hasher: Hasher, precision: int = 10, seed: Optional[int] = None
    ) -> "HyperLogLog[T]":
        """
        Create an estimator that hashes items with ``hasher``.

        Equivalent to ``HyperLogLog(precision, hasher=hasher, seed=seed)``.
        """
        return cls(precision=precision, hasher=hasher, seed=seed)

    @classmethod
    def create_from_error_rate(
        cls,
        relative_error: float,
        hasher: Optional[Hasher] = None,
        seed: Optional[int] = None,
    ) -> "HyperLogLog[T]":
        """
        Create an estimator whose standard error is at most ``relative_error``.

        Solves ``1.04 / sqrt(2^p) <= relative_error`` for the smallest p,
        raised to at least 4.

        Raises:
            ValueError: If relative_error is not in (0, 1) or would need a
                        precision above 16.
        """
        if not (0 < relative_error < 1):
            raise ValueError("Relative error must be between 0 and 1")

        precision = max(
            ALPHA_MIN_PRECISION, math.ceil(math.log2((1.04 / relative_error) ** 2))
        )
        if precision > ALPHA_MAX_PRECISION:
            raise ValueError(
                f"Relative error of {relative_error} is too small to achieve "
                f"with maximum precision of {ALPHA_MAX_PRECISION}"
            )

        return cls(precision=precision, hasher=hasher, seed=seed)

    @property
    def precision(self) -> int:
        return self._precision

    @property
    def register_count(self) -> int:
        return self._m

    @property
    def alpha(self) -> float:
        return self._alpha

    def add(self, item: T) -> None:
        """
        Add an item to the estimator.

        Args:
            item: The item to add.
        """
        super().add(item)

        hash_value = self._hasher(item, self._seed) & MASK_32

        register_index = hash_value & self._index_mask
        shifted = ((hash_value << self._precision) & MASK_32) | self._sentinel
        rank = _count_leading_zeros(shifted) + 1

        if rank > self._registers[register_index]:
            self._registers[register_index] = rank

    def count(self) -> float:
        """
        Estimate the number of distinct items added.

        Applies linear counting while the raw estimate is at most 2.5 * m and
        some register is still empty, and the large-range correction once the
        raw estimate passes 2^32 / 30.

        Returns:
            The cardinality estimate; 0.0 for an empty estimator.
        """
        sum_of_inverses = 0.0
        zero_registers = 0
        for register_value in self._registers:
            sum_of_inverses += 1.0 / (1 << register_value)
            if register_value == 0:
                zero_registers += 1

        m = self._m
        raw = self._alpha * m * m / sum_of_inverses

        if raw <= 2.5 * m and zero_registers != 0:
            return linear_counting(m, zero_registers)

        if raw > _TWO_32 / 30.0:
            if raw >= _TWO_32:
                logger.warning(
                    "HyperLogLog estimate %.0f saturates the 32-bit hash space; "
                    "returning the uncorrected value",
                    raw,
                )
                return raw
            return -_TWO_32 * math.log(1.0 - raw / _TWO_32)

        return raw

    def estimate_cardinality(self) -> int:
        """The count() estimate rounded to the nearest integer."""
        return int(round(self.count()))

    def merge(self, other: "HyperLogLog[T]") -> "HyperLogLog[T]":
        """
        Union of two estimators with the same precision, hasher and seed.

        Each register of the result is the maximum of the two inputs, so the
        result estimates the cardinality of the union of both streams.

        Raises:
            TypeError: If other is not a HyperLogLog.
            ValueError: If precision, hasher or seed differ.
        """
        self._check_same_type(other)
        if self._precision != other._precision:
            raise ValueError(
                f"Cannot merge HyperLogLog estimators with different precision: "
                f"{self._precision} and {other._precision}"
            )
        self._check_same_hashing(other)

        result = HyperLogLog[T](
            precision=self._precision, hasher=self._hasher, seed=self._seed
        )
        result._registers = array.array(
            "B", (max(a, b) for a, b in zip(self._registers, other._registers))
        )
        result._items_processed = self._combine_items_processed(other)
        return result

    def get_register_values(self) -> List[int]:
        """Copy of the current register values."""
        return list(self._registers)

    def standard_error(self) -> float:
        """Theoretical relative standard error, 1.04 / sqrt(m)."""
        return 1.04 / math.sqrt(self._m)

    def estimate_size(self) -> int:
        return super().estimate_size() + sys.getsizeof(self._registers)

    def error_bounds(self) -> Dict[str, Any]:
        """
        Relative error bounds for this precision.

        Returns:
            relative_error: the standard error, 1.04 / sqrt(m)
            confidence_68pct / 95pct / 99pct: 1, 1.96 and 2.58 standard errors
        """
        bounds = super().error_bounds()
        std_error = self.standard_error()
        bounds.update(
            {
                "relative_error": std_error,
                "confidence_68pct": std_error,
                "confidence_95pct": std_error * 1.96,
                "confidence_99pct": std_error * 2.58,
            }
        )
        return bounds

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats.update(
            {
                "precision": self._precision,
                "num_registers": self._m,
                "alpha_value": self._alpha,
                "empty_registers": self._registers.count(0),
                "max_register_value": max(self._registers),
            }
        )
        return stats

    def __repr__(self) -> str:
        return f"HyperLogLog(precision={self._precision}, registers={self._m})"
