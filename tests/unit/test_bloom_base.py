"""
Unit tests for the Bloom filter implementation.
"""

import math
import unittest

from probsketch.algorithms.bloom.base import (
    BloomFilter,
    optimal_bit_size,
    optimal_hash_count,
)
from probsketch.core.hash import fnv1a_32, murmurhash3_32

WORDS_PRESENT = [
    "abound",
    "abounds",
    "abundance",
    "abundant",
    "accessible",
    "bloom",
    "blossom",
    "bolster",
    "bonny",
    "bonus",
    "bonuses",
    "coherent",
    "cohesive",
    "colorful",
    "comely",
    "comfort",
    "gems",
    "generosity",
    "generous",
    "generously",
    "genial",
]

WORDS_ABSENT = [
    "bluff",
    "cheater",
    "hate",
    "war",
    "humanity",
    "racism",
    "hurt",
    "nuke",
    "gloomy",
    "facebook",
    "geeksforgeeks",
    "twitter",
]


class TestSizingFormulas(unittest.TestCase):
    """Test cases for optimal_bit_size and optimal_hash_count."""

    def test_known_values(self):
        # m = ceil(-n * ln(p) / ln(2)^2), k = ceil((m / n) * ln(2))
        self.assertEqual(optimal_bit_size(20, 0.05), 125)
        self.assertEqual(optimal_hash_count(125, 20), 5)
        self.assertEqual(optimal_bit_size(1000, 0.01), 9586)
        self.assertEqual(optimal_hash_count(9586, 1000), 7)

    def test_invalid_inputs(self):
        with self.assertRaises(ValueError):
            optimal_bit_size(0, 0.01)
        with self.assertRaises(ValueError):
            optimal_bit_size(10, 0.0)
        with self.assertRaises(ValueError):
            optimal_bit_size(10, 1.0)
        with self.assertRaises(ValueError):
            optimal_hash_count(100, 0)


class TestBloomFilter(unittest.TestCase):
    """Test cases for Bloom Filter."""

    def test_init(self):
        """Test initialization with valid and invalid parameters."""
        bf = BloomFilter(expected_items=20, false_positive_rate=0.05)
        expected_m = math.ceil(-20 * math.log(0.05) / math.log(2) ** 2)
        self.assertEqual(bf.size(), expected_m)
        self.assertEqual(bf.hash_count(), 5)
        self.assertEqual(bf.epsilon(), 0.05)
        self.assertEqual(bf.expected_items, 20)
        self.assertTrue(bf.is_empty())
        self.assertEqual(len(bf._bytes), (expected_m + 7) // 8)

        with self.assertRaises(ValueError):
            BloomFilter(expected_items=0)
        with self.assertRaises(ValueError):
            BloomFilter(false_positive_rate=0)
        with self.assertRaises(ValueError):
            BloomFilter(false_positive_rate=1.0)
        with self.assertRaises(ValueError):
            BloomFilter(false_positive_rate=1.5)
        with self.assertRaises(TypeError):
            BloomFilter(hasher="murmur")

    def test_sample_words(self):
        """Every sample word is reported present after being added."""
        bf = BloomFilter(20, 0.05)
        for word in WORDS_PRESENT:
            bf.add(word)

        for word in WORDS_PRESENT:
            self.assertTrue(bf.contains(word), f"{word} should be present")
            self.assertIn(word, bf)
            self.assertTrue(bf.query(word))

        false_positives = sum(1 for word in WORDS_ABSENT if bf.contains(word))
        self.assertLess(false_positives, len(WORDS_ABSENT))

    def test_empty_filter_contains_nothing(self):
        bf = BloomFilter(expected_items=100, false_positive_rate=0.01)
        for item in ["apple", 1, (2, 3), b"raw"]:
            self.assertFalse(bf.contains(item))
        self.assertEqual(bf.estimate_cardinality(), 0)
        self.assertEqual(bf.fill_ratio(), 0.0)

    def test_no_false_negatives(self):
        """Added items stay present as the filter fills past capacity."""
        bf = BloomFilter(expected_items=1000, false_positive_rate=0.01)

        added = []
        for i in range(2000):
            item = f"item-{i}"
            bf.add(item)
            added.append(item)
            self.assertTrue(bf.contains(item))

        for item in added:
            self.assertTrue(bf.contains(item), f"False negative for {item}")

    def test_false_positive_rate(self):
        """Mean false positive rate at capacity over several seeds stays within 2 * epsilon."""
        epsilon = 0.05
        n_items = 1000
        n_tests = 10000
        seeds = [0, 1, 7, 42, 1234]

        rates = []
        for seed in seeds:
            bf = BloomFilter(
                expected_items=n_items, false_positive_rate=epsilon, seed=seed
            )
            for i in range(n_items):
                bf.add(f"item-{i}")

            false_positives = sum(
                1 for i in range(n_tests) if bf.contains(f"other-{i}")
            )
            rates.append(false_positives / n_tests)
            self.assertAlmostEqual(
                bf.false_positive_probability(), epsilon, delta=epsilon
            )

        mean_rate = sum(rates) / len(rates)
        self.assertLessEqual(
            mean_rate,
            2 * epsilon,
            f"Mean false positive rate {mean_rate:.4f} exceeds {2 * epsilon} "
            f"(per seed: {rates})",
        )

    def test_bit_positions_are_independent(self):
        """Bit positions for one item are spread, not one repeated bit."""
        bf = BloomFilter(expected_items=1000, false_positive_rate=0.01)
        positions = bf._get_bit_positions("apple")

        self.assertEqual(len(positions), bf.hash_count())
        self.assertGreater(len(set(positions)), 1)

        bf.add("apple")
        self.assertEqual(bf._count_set_bits(), len(set(positions)))

    def test_bit_positions_distinct_for_every_item(self):
        """No item maps its k positions onto fewer than k bits."""
        bf = BloomFilter(20, 0.05)
        for i in range(5000):
            positions = bf._get_bit_positions(f"word-{i}")
            self.assertEqual(
                len(set(positions)), bf.hash_count(), f"word-{i} -> {positions}"
            )

    def test_second_hash_multiple_of_size(self):
        """A second hash divisible by m still yields k distinct positions."""
        bf = BloomFilter(
            expected_items=20,
            false_positive_rate=0.05,
            hasher=lambda item, seed: 58 if seed == 0 else 125 * 7,
        )
        self.assertEqual(bf.size(), 125)
        self.assertEqual(bf._get_bit_positions("x"), [58, 59, 60, 61, 62])

        bf.add("x")
        self.assertEqual(bf._count_set_bits(), bf.hash_count())
        self.assertTrue(bf.contains("x"))

    def test_second_hash_sharing_factor_with_size(self):
        """A stride sharing a factor with m is moved to the next coprime one."""
        # m = 125 = 5^3; 25 and 26 -> 26 is the first stride coprime with 125
        bf = BloomFilter(
            expected_items=20,
            false_positive_rate=0.05,
            hasher=lambda item, seed: 0 if seed == 0 else 25,
        )
        self.assertEqual(bf._get_bit_positions("x"), [0, 26, 52, 78, 104])

    def test_injected_hasher(self):
        """A deterministic stub hasher drives bit positions."""
        calls = []

        def stub(item, seed):
            calls.append(seed)
            return 3 if seed == 0 else 12

        bf = BloomFilter(expected_items=20, false_positive_rate=0.05, hasher=stub)
        self.assertEqual(
            bf._get_bit_positions("anything"),
            [(3 + i * 12) % bf.size() for i in range(bf.hash_count())],
        )

        bf.add("x")
        self.assertTrue(bf.contains("y"))  # same positions, so a false positive
        self.assertEqual(set(calls), {0, 1})

    def test_deterministic(self):
        bf1 = BloomFilter(expected_items=500, false_positive_rate=0.01, seed=9)
        bf2 = BloomFilter(expected_items=500, false_positive_rate=0.01, seed=9)
        for i in range(300):
            bf1.add(i)
            bf2.add(i)

        self.assertEqual(bf1._bytes, bf2._bytes)
        for i in range(300, 1300):
            self.assertEqual(bf1.contains(i), bf2.contains(i))

    def test_mixed_item_types(self):
        bf = BloomFilter(expected_items=100, false_positive_rate=0.01)
        items = ["apple", 123, 45.67, (1, "tuple"), b"\x00bytes"]
        for item in items:
            bf.add(item)
        for item in items:
            self.assertTrue(bf.contains(item))

    def test_int_and_str_are_different_items(self):
        bf = BloomFilter(expected_items=1000, false_positive_rate=0.001)
        bf.add(123)
        self.assertIn(123, bf)
        self.assertNotIn("123", bf)

    def test_merge(self):
        bf1 = BloomFilter(expected_items=1000, false_positive_rate=0.01)
        bf2 = BloomFilter(expected_items=1000, false_positive_rate=0.01)
        for i in range(100):
            bf1.add(f"a-{i}")
            bf2.add(f"b-{i}")

        merged = bf1.merge(bf2)

        self.assertIsNot(merged, bf1)
        self.assertEqual(merged.items_processed, 200)
        for i in range(100):
            self.assertTrue(merged.contains(f"a-{i}"))
            self.assertTrue(merged.contains(f"b-{i}"))
        # inputs untouched
        self.assertEqual(bf1.items_processed, 100)

    def test_merge_incompatible(self):
        bf = BloomFilter(expected_items=1000, false_positive_rate=0.01)

        with self.assertRaises(ValueError):
            bf.merge(BloomFilter(expected_items=2000, false_positive_rate=0.01))
        with self.assertRaises(ValueError):
            bf.merge(BloomFilter(expected_items=1000, false_positive_rate=0.01, seed=5))
        with self.assertRaises(ValueError):
            bf.merge(
                BloomFilter(
                    expected_items=1000, false_positive_rate=0.01, hasher=fnv1a_32
                )
            )
        with self.assertRaises(TypeError):
            bf.merge("not a filter")

    def test_estimate_cardinality(self):
        bf = BloomFilter(expected_items=5000, false_positive_rate=0.01)
        for i in range(2000):
            bf.add(f"item-{i}")
        for i in range(500):
            bf.add(f"item-{i}")  # duplicates

        estimate = bf.estimate_cardinality()
        self.assertLessEqual(abs(estimate - 2000) / 2000, 0.1)

    def test_saturation_warning_logged_once(self):
        bf = BloomFilter(expected_items=5, false_positive_rate=0.1)
        with self.assertLogs("probsketch.algorithms.bloom.base", level="WARNING") as cm:
            for i in range(20):
                bf.add(i)
        self.assertEqual(len(cm.output), 1)
        self.assertIn("expected items", cm.output[0])

    def test_stats(self):
        bf = BloomFilter(expected_items=100, false_positive_rate=0.01)
        for i in range(50):
            bf.add(i)

        stats = bf.get_stats()
        self.assertEqual(stats["type"], "BloomFilter")
        self.assertEqual(stats["items_processed"], 50)
        self.assertEqual(stats["bit_size"], bf.size())
        self.assertEqual(stats["hash_count"], bf.hash_count())
        self.assertEqual(stats["target_fpp"], 0.01)
        self.assertGreater(stats["set_bits"], 0)
        self.assertLess(stats["current_theoretical_fpp"], 0.01)
        self.assertGreater(bf.estimate_size(), len(bf._bytes))

    def test_default_hasher(self):
        self.assertIs(BloomFilter().hasher, murmurhash3_32)


if __name__ == "__main__":
    unittest.main()
