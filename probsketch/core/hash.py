"""
Hashing capability for probsketch.

Every sketch takes a ``hasher``: any callable ``hasher(item, seed) -> int`` whose
output bits are close to uniform. The two functions here are dependency-free
32-bit implementations; MurmurHash3 is the default everywhere.
"""

from typing import Any, Callable, Optional

# hasher(item, seed) -> non-negative integer, at least 32 bits wide
Hasher = Callable[[Any, int], int]

MASK_32 = 0xFFFFFFFF

# 0xFF never occurs in UTF-8, so tagged items cannot collide with any str
_TYPE_TAG = b"\xff"


def key_to_bytes(key: Any) -> bytes:
    """
    Convert an item to the byte string that gets hashed.

    ``bytes`` pass through and ``str`` is UTF-8 encoded. Anything else becomes
    ``0xFF`` + ``"<type qualname>:<repr>"``, so ``123``, ``123.0``, ``"123"``
    and ``Decimal("123")`` all hash differently. A ``str`` and the ``bytes``
    of its UTF-8 encoding are the same key.
    """
    if isinstance(key, bytes):
        return key
    if isinstance(key, str):
        return key.encode("utf-8")
    return _TYPE_TAG + f"{type(key).__qualname__}:{key!r}".encode("utf-8")


def _rotl32(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & MASK_32


def _fmix32(h: int) -> int:
    """MurmurHash3 finalizer: forces every input bit to affect every output bit."""
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & MASK_32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & MASK_32
    h ^= h >> 16
    return h


def murmurhash3_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python MurmurHash3, x86 32-bit variant.

    Args:
        key: The item to hash (converted with key_to_bytes)
        seed: Seed mixed into the initial state

    Returns:
        Unsigned 32-bit hash value
    """
    data = key_to_bytes(key)
    length = len(data)

    c1 = 0xCC9E2D51
    c2 = 0x1B873593

    h = seed & MASK_32

    body_end = length - (length & 3)
    for offset in range(0, body_end, 4):
        k = int.from_bytes(data[offset : offset + 4], "little")
        k = (_rotl32((k * c1) & MASK_32, 15) * c2) & MASK_32

        h = _rotl32(h ^ k, 13)
        h = (h * 5 + 0xE6546B64) & MASK_32

    # The 0-3 bytes after the last full block, little-endian
    tail = data[body_end:]
    if tail:
        k = int.from_bytes(tail, "little")
        h ^= (_rotl32((k * c1) & MASK_32, 15) * c2) & MASK_32

    return _fmix32(h ^ length)


def fnv1a_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python FNV-1a, 32-bit variant.

    Cheaper than MurmurHash3 but with weaker avalanche on short keys. The seed
    is XORed into the offset basis.

    Args:
        key: The item to hash (converted with key_to_bytes)
        seed: Seed value

    Returns:
        Unsigned 32-bit hash value
    """
    fnv_prime = 16777619
    offset_basis = 2166136261

    h = (offset_basis ^ seed) & MASK_32
    for byte in key_to_bytes(key):
        h ^= byte
        h = (h * fnv_prime) & MASK_32

    return h


def resolve_hasher(hasher: Optional[Hasher]) -> Hasher:
    """
    Return the hasher a sketch should use.

    Raises:
        TypeError: If hasher is neither None nor callable.
    """
    if hasher is None:
        return murmurhash3_32
    if not callable(hasher):
        raise TypeError(
            f"hasher must be callable as hasher(item, seed), got {type(hasher).__name__}"
        )
    return hasher
