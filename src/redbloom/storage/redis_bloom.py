"""
Redis-backed Bloom filter.

The bit array is split across one or more Redis bitmap keys (shards) so a
filter can grow past the 2^32-bit limit of a single key. Parameters and the
shard layout live in a hash under the filter's name, which lets any process
re-attach with RedisBloomFilter.restore().

Example:
    client = await connect()
    bf = await RedisBloomFilter.create(client, "seen-urls", n=1_000_000, p=0.001)
    await bf.add(b"https://example.com")
    assert await bf.exists(b"https://example.com")

    same = await RedisBloomFilter.restore(client, "seen-urls")
"""

from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from redbloom.core.errors import (
    AlreadyExistsError,
    InvalidParameterError,
    RestoreError,
    StorageError,
)
from redbloom.core.hashing import hash_positions
from redbloom.core.params import calculate_params
from redbloom.core.partition import (
    infer_shard_bits,
    plan_shards,
    resolve_locations,
    validate_layout,
    validate_shard_bits,
)
from redbloom.core.types import MAX_SHARD_BITS, FilterParameters, Location, ShardDescriptor
from redbloom.storage.metadata import FIELD_PARTS, load_metadata, save_metadata

logger = logging.getLogger(__name__)


async def _delete_keys(
    client: redis.Redis, keys: list[str], context: str, level: int = logging.WARNING
) -> int:
    """Delete keys in one pipeline. Failures are logged, not raised."""
    if not keys:
        return 0
    try:
        async with client.pipeline(transaction=False) as pipe:
            for key in keys:
                pipe.delete(key)
            results = await pipe.execute()
    except RedisError as e:
        logger.log(level, f"{context}: could not delete {keys}: {e}")
        return 0
    return sum(results)


def _validate_max_hash_attempts(max_hash_attempts: int | None) -> None:
    if max_hash_attempts is not None and max_hash_attempts < 1:
        raise InvalidParameterError("max_hash_attempts", "Must be at least 1", max_hash_attempts)


class RedisBloomFilter:
    """
    Bloom filter whose bits live in Redis.

    Instances hold only immutable parameters and the client, so one
    instance may be shared by any number of concurrent tasks. Each add()
    or exists() is a single pipelined round trip.

    No locking is done across the k bit writes of an add(). An exists()
    racing with an add() of the same value may see only some of its bits
    set and report False; outside such races there are no false negatives.
    """

    def __init__(
        self,
        client: redis.Redis,
        params: FilterParameters,
        shards: list[ShardDescriptor],
        shard_bits: int = MAX_SHARD_BITS,
        max_hash_attempts: int | None = None,
    ):
        """
        Wrap an existing layout. Use create() or restore() instead.

        Args:
            client: Redis asyncio client
            params: Filter sizing
            shards: Shard layout matching params.m and shard_bits
            shard_bits: Bits per shard
            max_hash_attempts: Ceiling on hash attempts per element
        """
        self._client = client
        self._params = params
        self._shards = tuple(shards)
        self._shard_bits = shard_bits
        self._max_hash_attempts = max_hash_attempts

    @classmethod
    async def create(
        cls,
        client: redis.Redis,
        name: str,
        n: int,
        p: float,
        *,
        shard_bits: int = MAX_SHARD_BITS,
        max_hash_attempts: int | None = None,
    ) -> RedisBloomFilter:
        """
        Create a new filter and its storage.

        Args:
            client: Redis asyncio client
            name: Unique key name; must not exist yet
            n: Expected number of elements
            p: Target false-positive rate
            shard_bits: Bits per shard (at most 2^32)
            max_hash_attempts: Ceiling on hash attempts per element

        Raises:
            InvalidParameterError: Bad name, n, p or shard_bits (nothing written)
            AlreadyExistsError: A key already exists under name, or a shard key
                holds something other than a bitmap
            StorageError: Redis failed; partially created keys are removed
        """
        if not isinstance(name, str) or not name:
            raise InvalidParameterError("name", "Filter name must be a non-empty string", name)
        _validate_max_hash_attempts(max_hash_attempts)
        m, k = calculate_params(n, p)
        shards = plan_shards(name, m, shard_bits)
        params = FilterParameters(name=name, n=n, p=float(p), m=m, k=k)

        try:
            taken = await client.exists(name)
        except RedisError as e:
            raise StorageError("create", f"{name}: {e}") from e
        if taken:
            raise AlreadyExistsError(name)
        await cls._check_shard_keys(client, name, shards)

        await cls._init_storage(client, shards)

        bloom = cls(client, params, shards, shard_bits, max_hash_attempts)
        try:
            await save_metadata(client, params, shards)
        except StorageError:
            await _delete_keys(
                client, bloom._keys(), f"cleanup of '{name}'", level=logging.ERROR
            )
            raise

        logger.info(f"Created bloom filter '{name}': m={m} k={k} shards={len(shards)}")
        return bloom

    @staticmethod
    async def _check_shard_keys(
        client: redis.Redis, name: str, shards: list[ShardDescriptor]
    ) -> None:
        """
        Refuse to reclaim shard keys that hold anything but a bitmap.

        Leftover bitmaps from an interrupted creation may be reclaimed. Any
        other type under a shard key belongs to someone else (e.g. the
        metadata record of a filter named "<name>:0").
        """
        try:
            async with client.pipeline(transaction=False) as pipe:
                for shard in shards:
                    pipe.type(shard.key)
                kinds = await pipe.execute()
        except RedisError as e:
            raise StorageError("create", f"{name}: {e}") from e

        for shard, kind in zip(shards, kinds):
            if isinstance(kind, bytes):
                kind = kind.decode()
            if kind not in ("none", "string"):
                raise AlreadyExistsError(shard.key)

    @staticmethod
    async def _init_storage(client: redis.Redis, shards: list[ShardDescriptor]) -> None:
        """
        Allocate every shard at full length.

        Writing a 0 at a shard's last offset makes Redis allocate the whole
        bitmap without setting any bit. Leftover keys from an earlier,
        interrupted creation are dropped first.
        """
        touched: list[str] = []
        for shard in shards:
            touched.append(shard.key)
            try:
                async with client.pipeline(transaction=False) as pipe:
                    pipe.delete(shard.key)
                    pipe.setbit(shard.key, shard.max_offset, 0)
                    await pipe.execute()
            except RedisError as e:
                await _delete_keys(
                    client, touched, f"cleanup of shard {shard.key}", level=logging.ERROR
                )
                raise StorageError("create shard", f"{shard.key}: {e}") from e
            logger.debug(f"Allocated shard {shard.key} (max offset {shard.max_offset})")

    @classmethod
    async def restore(
        cls,
        client: redis.Redis,
        name: str,
        *,
        max_hash_attempts: int | None = None,
    ) -> RedisBloomFilter:
        """
        Re-attach to an existing filter by name.

        Raises:
            InvalidParameterError: Bad max_hash_attempts
            NotFoundError: No metadata record under name
            RestoreError: Record is malformed or its layout is inconsistent
            StorageError: Redis failed
        """
        _validate_max_hash_attempts(max_hash_attempts)
        params, shards = await load_metadata(client, name)
        shard_bits = infer_shard_bits(shards)
        try:
            validate_shard_bits(shard_bits)
            validate_layout(name, params.m, shards, shard_bits)
        except ValueError as e:
            raise RestoreError(name, FIELD_PARTS, str(e)) from e

        logger.info(f"Restored bloom filter '{name}': m={params.m} k={params.k}")
        return cls(client, params, shards, shard_bits, max_hash_attempts)

    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._params.name

    @property
    def parameters(self) -> FilterParameters:
        return self._params

    @property
    def shards(self) -> tuple[ShardDescriptor, ...]:
        return self._shards

    @property
    def shard_bits(self) -> int:
        return self._shard_bits

    @property
    def client(self) -> redis.Redis:
        return self._client

    def _keys(self) -> list[str]:
        return [self.name] + [shard.key for shard in self._shards]

    def hashes(self, value: bytes | str) -> list[int]:
        """The k bit positions of value in [0, m)."""
        return hash_positions(value, self._params.k, self._params.m, self._max_hash_attempts)

    def locations(self, value: bytes | str) -> list[Location]:
        """The k (shard key, offset) pairs of value."""
        return resolve_locations(self.hashes(value), self._shards, self._shard_bits)

    async def add(self, value: bytes | str) -> None:
        """
        Insert value.

        Raises:
            StorageError: If the pipeline fails (not retried)
        """
        locations = self.locations(value)
        try:
            async with self._client.pipeline(transaction=False) as pipe:
                for loc in locations:
                    pipe.setbit(loc.shard_key, loc.offset, 1)
                await pipe.execute()
        except RedisError as e:
            raise StorageError("add", f"{self.name}: {e}") from e

    async def exists(self, value: bytes | str) -> bool:
        """
        Test membership.

        Returns:
            False if value was definitely never added, True if it probably was

        Raises:
            StorageError: If the pipeline fails
        """
        locations = self.locations(value)
        try:
            async with self._client.pipeline(transaction=False) as pipe:
                for loc in locations:
                    pipe.getbit(loc.shard_key, loc.offset)
                bits = await pipe.execute()
        except RedisError as e:
            raise StorageError("exists", f"{self.name}: {e}") from e

        return all(bit == 1 for bit in bits)

    async def clear(self) -> int:
        """
        Delete the metadata record and every shard.

        Best effort: a failure is logged and nothing is rolled back.

        Returns:
            Number of keys removed
        """
        removed = await _delete_keys(self._client, self._keys(), f"clear of '{self.name}'")
        logger.info(f"Cleared bloom filter '{self.name}' ({removed} keys removed)")
        return removed

    def info(self) -> dict[str, Any]:
        """Parameters and layout as plain data."""
        params = self._params
        return {
            "name": params.name,
            "n": params.n,
            "p": params.p,
            "m": params.m,
            "k": params.k,
            "shard_bits": self._shard_bits,
            "shards": [
                {"key": shard.key, "max_offset": shard.max_offset} for shard in self._shards
            ],
        }

    def __repr__(self) -> str:
        p = self._params
        return (
            f"RedisBloomFilter(name={p.name!r}, n={p.n}, p={p.p}, m={p.m}, k={p.k}, "
            f"shards={len(self._shards)})"
        )
