"""
Base classes shared by the probsketch data structures.

Each sketch is a fixed-size summary of a stream of hashable items. The base
class owns the bookkeeping common to all of them: the injected hashing
capability, the count of items seen, type checks for merging and the
diagnostic statistics dictionaries.

Sketches are single-writer structures. Callers that feed one sketch from
several threads must serialize calls to ``add`` themselves.
"""

import abc
import sys
from typing import Any, Dict, Generic, Optional, TypeVar

from probsketch.core.hash import Hasher, resolve_hasher

T = TypeVar("T")  # Type for the items being processed
R = TypeVar("R")  # Type for the result of queries


class StreamSummary(Generic[T, R], abc.ABC):
    """
    Abstract base class for all probabilistic sketches.

    Subclasses implement ``add``, ``query`` and ``merge`` and call
    ``super().add(item)`` so the processed-item counter stays accurate.
    """

    def __init__(self, hasher: Optional[Hasher] = None, seed: Optional[int] = None):
        """
        Initialize the shared sketch state.

        Args:
            hasher: Callable ``hasher(item, seed) -> int``. Defaults to
                    murmurhash3_32.
            seed: Seed passed to the hasher. Defaults to 0.

        Raises:
            TypeError: If hasher is not callable.
        """
        self._hasher = resolve_hasher(hasher)
        self._seed = seed if seed is not None else 0
        self._items_processed = 0

    @abc.abstractmethod
    def add(self, item: T) -> None:
        """
        Add an item from the stream.

        Args:
            item: The item to add.
        """
        self._items_processed += 1

    @abc.abstractmethod
    def query(self, *args: Any, **kwargs: Any) -> R:
        """Query the current state of the sketch."""
        pass

    @abc.abstractmethod
    def merge(self, other: "StreamSummary[T, R]") -> "StreamSummary[T, R]":
        """
        Combine this sketch with another of the same type and shape.

        Returns:
            A new sketch; neither input is modified.

        Raises:
            TypeError: If other is not of the same type.
            ValueError: If the sketches were built with different parameters.
        """
        pass

    def _check_same_type(self, other: "StreamSummary[T, R]") -> None:
        if not isinstance(other, self.__class__):
            raise TypeError(
                f"Cannot merge {self.__class__.__name__} with {other.__class__.__name__}"
            )

    def _check_same_hashing(self, other: "StreamSummary[T, R]") -> None:
        # Positions only line up when both sketches hash identically
        if self._hasher is not other._hasher or self._seed != other._seed:
            raise ValueError(
                "Cannot merge sketches built with different hashers or seeds"
            )

    def _combine_items_processed(self, other: "StreamSummary[T, R]") -> int:
        return self._items_processed + other._items_processed

    @property
    def items_processed(self) -> int:
        """Total number of add() calls, duplicates included."""
        return self._items_processed

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def hasher(self) -> Hasher:
        return self._hasher

    def estimate_size(self) -> int:
        """
        Rough memory footprint of the sketch in bytes.

        Subclasses add the size of their bit or register arrays.
        """
        size = sys.getsizeof(self)
        if hasattr(self, "__dict__"):
            size += sys.getsizeof(self.__dict__)
        return size

    def error_bounds(self) -> Dict[str, Any]:
        """
        Theoretical error guarantees for the current configuration.

        The base implementation has none and returns an empty dictionary.
        """
        return {}

    def get_stats(self) -> Dict[str, Any]:
        """
        Diagnostic statistics about the sketch.

        Subclasses extend the dictionary with their own parameters.
        """
        stats = {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "seed": self._seed,
            "memory_bytes": self.estimate_size(),
        }
        stats.update(self.error_bounds())
        return stats


class MembershipTester(StreamSummary[T, bool], abc.ABC):
    """
    Abstract base class for approximate set membership structures.

    Examples include the Bloom filter.
    """

    @abc.abstractmethod
    def contains(self, item: T) -> bool:
        """
        Test whether an item may have been added.

        Returns:
            False if the item was definitely never added, True if it
            probably was.
        """
        pass

    def query(self, item: T, *args: Any, **kwargs: Any) -> bool:
        return self.contains(item)

    def __contains__(self, item: T) -> bool:
        return self.contains(item)


class CardinalityEstimator(StreamSummary[T, int], abc.ABC):
    """
    Abstract base class for cardinality estimation algorithms.

    Examples include HyperLogLog.
    """

    @abc.abstractmethod
    def estimate_cardinality(self) -> int:
        """
        Estimate the number of distinct items added.

        Returns:
            The estimated cardinality.
        """
        pass

    def query(self, *args: Any, **kwargs: Any) -> int:
        return self.estimate_cardinality()

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats["estimated_cardinality"] = self.estimate_cardinality()
        return stats
