"""
Basic Bloom filter demo for probsketch.

Builds a small filter for 20 words at a 5% false positive target, adds a list
of words, then checks a mix of added and never-added words.
"""

import logging

from probsketch import BloomFilter

WORDS_PRESENT = [
    "abound", "abounds", "abundance", "abundant", "accessible",
    "bloom", "blossom", "bolster", "bonny", "bonus",
    "bonuses", "coherent", "cohesive", "colorful", "comely",
    "comfort", "gems", "generosity", "generous", "generously",
    "genial",
]

WORDS_ABSENT = [
    "bluff", "cheater", "hate", "war", "humanity", "racism",
    "hurt", "nuke", "gloomy", "facebook", "geeksforgeeks", "twitter",
]


def main():
    bloom = BloomFilter(expected_items=20, false_positive_rate=0.05)
    print(
        f"Size: {bloom.size()} bits, epsilon: {bloom.epsilon()}, "
        f"hash count: {bloom.hash_count()}"
    )

    for word in WORDS_PRESENT:
        bloom.add(word)

    test_words = WORDS_PRESENT[:10] + WORDS_ABSENT
    false_positives = 0
    for word in test_words:
        if word in bloom and word in WORDS_ABSENT:
            false_positives += 1
            print(f"  '{word}' is a false positive")

    print(f"False positives: {false_positives}")
    print(f"Ratio: {false_positives / len(test_words):.3f}")
    print(f"Current estimated FPP: {bloom.false_positive_probability():.3f}")


if __name__ == "__main__":
    # 21 words overflow a 20-item filter; show the warning
    logging.basicConfig(level=logging.WARNING)
    main()
