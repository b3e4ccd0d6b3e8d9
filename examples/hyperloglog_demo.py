"""
HyperLogLog demo for probsketch.

Counts distinct items in streams of increasing size at several precisions and
compares each estimate with the exact count.
"""

from probsketch import HyperLogLog, fnv1a_32


def compare_precisions(n_unique=100_000):
    print(f"\n=== {n_unique:,} distinct items ===")
    print(f"{'p':>3} {'registers':>10} {'estimate':>12} {'error':>8} {'std err':>8}")
    for precision in (4, 6, 8, 10, 12):
        hll = HyperLogLog(precision=precision)
        for i in range(n_unique):
            hll.add(f"user-{i}")

        estimate = hll.count()
        error = abs(estimate - n_unique) / n_unique
        print(
            f"{precision:>3} {hll.register_count:>10} {estimate:>12,.0f} "
            f"{error:>8.2%} {hll.standard_error():>8.2%}"
        )


def demonstrate_duplicates():
    print("\n=== Duplicates do not change the estimate ===")
    hll = HyperLogLog.with_hasher(fnv1a_32, 10)
    for i in range(5_000):
        hll.add(i)
    before = hll.count()
    for _ in range(3):
        for i in range(5_000):
            hll.add(i)
    print(f"  after 5,000 distinct: {before:,.1f}")
    print(f"  after 20,000 adds:    {hll.count():,.1f}")


def demonstrate_merge():
    print("\n=== Merging two streams ===")
    morning = HyperLogLog(precision=10)
    evening = HyperLogLog(precision=10)
    for i in range(30_000):
        morning.add(f"visitor-{i}")
    for i in range(20_000, 50_000):
        evening.add(f"visitor-{i}")

    both = morning.merge(evening)
    print(f"  morning: {morning.count():,.0f}  evening: {evening.count():,.0f}")
    print(f"  union:   {both.count():,.0f} (true 50,000)")


if __name__ == "__main__":
    for size in (100, 10_000, 100_000):
        compare_precisions(size)
    demonstrate_duplicates()
    demonstrate_merge()
