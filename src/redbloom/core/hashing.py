"""
Hash position generation with rejection sampling.

Positions come from a chain of seeded XXH64 digests: each attempt feeds the
previous 64-bit digest back in as the seed. A raw digest is only reduced
modulo m when it falls below the largest multiple of m that fits in 64 bits,
which keeps the reduction unbiased.
"""

from __future__ import annotations

import xxhash

from redbloom.core.errors import HashExhaustedError, InvalidParameterError

MAX_UINT64 = (1 << 64) - 1

# Default attempts allowed per wanted position. Rejection odds per attempt are
# at most m / 2^64, so this ceiling is never reached for a sane m.
ATTEMPTS_PER_POSITION = 64


def to_bytes(value: bytes | bytearray | memoryview | str) -> bytes:
    """
    Normalize a filter element to bytes (str is UTF-8 encoded).

    Raises:
        TypeError: If value is not bytes-like or str
        InvalidParameterError: If value is empty
    """
    if isinstance(value, str):
        data = value.encode("utf-8")
    elif isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
    else:
        raise TypeError(f"Expected bytes or str, got {type(value).__name__}")
    if not data:
        raise InvalidParameterError("value", "Filter elements must not be empty", value)
    return data


def seeded_hash(seed: int, data: bytes) -> int:
    """Unsigned 64-bit XXH64 digest of data under a 64-bit seed."""
    return xxhash.xxh64(data, seed=seed).intdigest()


def rejection_sample(raw: int, m: int) -> int | None:
    """Reduce raw into [0, m), or None if doing so would bias the result."""
    if raw == 0 or raw > MAX_UINT64 - MAX_UINT64 % m:
        return None
    return raw % m


def hash_positions(
    value: bytes | bytearray | memoryview | str,
    k: int,
    m: int,
    max_attempts: int | None = None,
) -> list[int]:
    """
    Generate k bit positions in [0, m) for value.

    Args:
        value: Element to hash (non-empty)
        k: Number of positions
        m: Bit-array length
        max_attempts: Ceiling on hash attempts (default k * ATTEMPTS_PER_POSITION)

    Returns:
        Exactly k positions (duplicates possible)

    Raises:
        InvalidParameterError: If value is empty
        HashExhaustedError: If the ceiling is hit before k positions are accepted
    """
    if k < 1 or m < 1:
        raise ValueError(f"k and m must be positive (k={k}, m={m})")

    data = to_bytes(value)
    limit = max_attempts if max_attempts is not None else k * ATTEMPTS_PER_POSITION

    positions: list[int] = []
    seed = 0
    attempts = 0
    while len(positions) < k:
        if attempts >= limit:
            raise HashExhaustedError(attempts, len(positions), k)
        attempts += 1
        seed = seeded_hash(seed, data)
        pos = rejection_sample(seed, m)
        if pos is not None:
            positions.append(pos)
    return positions
