"""
Shard layout for bit arrays larger than one Redis key can address.

A filter of m bits is split into ``m // C + 1`` bitmap keys named
``<name>:0 .. <name>:<cnt-1>``, where C (shard_bits) is the number of bits
a single key may hold. Position ``pos`` lives in shard ``pos // C`` at
offset ``pos % C``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from redbloom.core.errors import InvalidParameterError
from redbloom.core.types import MAX_SHARD_BITS, Location, ShardDescriptor


def shard_key(name: str, index: int) -> str:
    """Key of the index-th shard of filter name."""
    return f"{name}:{index}"


def validate_shard_bits(shard_bits: int) -> int:
    """Check C is within what Redis can address per key."""
    if isinstance(shard_bits, bool) or not isinstance(shard_bits, int):
        raise InvalidParameterError(
            "shard_bits", f"Expected int, got {type(shard_bits).__name__}", shard_bits
        )
    if not 1 <= shard_bits <= MAX_SHARD_BITS:
        raise InvalidParameterError(
            "shard_bits", f"Must be between 1 and {MAX_SHARD_BITS}", shard_bits
        )
    return shard_bits


def plan_shards(name: str, m: int, shard_bits: int = MAX_SHARD_BITS) -> list[ShardDescriptor]:
    """
    Partition an m-bit array into bounded shards.

    Every shard but the last spans the full C bits; the last one ends at
    offset ``m % C``.

    Args:
        name: Filter name, used as key prefix
        m: Bit-array length
        shard_bits: Bits per shard (C)

    Returns:
        Ordered shard descriptors
    """
    shard_bits = validate_shard_bits(shard_bits)
    if m < 1:
        raise InvalidParameterError("m", "Bit-array length must be at least 1", m)

    count = m // shard_bits + 1
    shards = [
        ShardDescriptor(key=shard_key(name, i), max_offset=shard_bits - 1)
        for i in range(count - 1)
    ]
    shards.append(ShardDescriptor(key=shard_key(name, count - 1), max_offset=m % shard_bits))
    return shards


def infer_shard_bits(shards: Sequence[ShardDescriptor]) -> int:
    """
    Recover C from a stored layout.

    With several shards the first one spans exactly C bits. A single shard
    means m < C, and every such C resolves positions identically, so the
    widest one is returned.
    """
    if len(shards) > 1:
        return shards[0].max_offset + 1
    return MAX_SHARD_BITS


def validate_layout(
    name: str, m: int, shards: Sequence[ShardDescriptor], shard_bits: int
) -> None:
    """
    Check a stored layout is exactly what plan_shards would produce.

    Raises:
        ValueError: On any mismatch (count, key names or bounds)
    """
    expected = plan_shards(name, m, shard_bits)
    if len(expected) != len(shards):
        raise ValueError(f"expected {len(expected)} shards, found {len(shards)}")
    for want, got in zip(expected, shards):
        if want != got:
            raise ValueError(
                f"shard mismatch: expected {want.key}@{want.max_offset}, "
                f"found {got.key}@{got.max_offset}"
            )


def resolve_locations(
    positions: Iterable[int],
    shards: Sequence[ShardDescriptor],
    shard_bits: int,
) -> list[Location]:
    """
    Map bit positions to (shard key, offset) pairs.

    Raises:
        ValueError: If a position falls outside the layout
    """
    locations = []
    for pos in positions:
        index, offset = divmod(pos, shard_bits)
        if pos < 0 or index >= len(shards) or offset > shards[index].max_offset:
            raise ValueError(f"Position {pos} is outside the shard layout")
        locations.append(Location(shard_key=shards[index].key, offset=offset))
    return locations
