"""
Filter metadata record stored under the filter's name.

The record is a Redis hash::

    name   filter name
    n      capacity, decimal text
    p      false-positive rate, decimal text
    m      bit-array length, decimal text
    k      hash count, decimal text
    parts  JSON array of {"Name": <shard key>, "Max": <max offset>}

Restoring trusts m and k as stored; nothing is recomputed.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

import redis.asyncio as redis
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from redbloom.core.errors import NotFoundError, RestoreError, StorageError
from redbloom.core.types import FilterParameters, ShardDescriptor

logger = logging.getLogger(__name__)

FIELD_NAME = "name"
FIELD_N = "n"
FIELD_P = "p"
FIELD_M = "m"
FIELD_K = "k"
FIELD_PARTS = "parts"

_DECIMAL = re.compile(r"[0-9]+")

_shard_list = TypeAdapter(list[ShardDescriptor])


def encode_record(params: FilterParameters, shards: list[ShardDescriptor]) -> dict[str, str]:
    """Convert parameters and layout to the hash stored in Redis."""
    return {
        FIELD_NAME: params.name,
        FIELD_N: str(params.n),
        FIELD_P: repr(params.p),
        FIELD_M: str(params.m),
        FIELD_K: str(params.k),
        FIELD_PARTS: _shard_list.dump_json(shards, by_alias=True).decode("utf-8"),
    }


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _field(name: str, record: dict[str, str], field: str) -> str:
    try:
        return record[field]
    except KeyError:
        raise RestoreError(name, field, "missing field") from None


def _parse_count(name: str, record: dict[str, str], field: str) -> int:
    text = _field(name, record, field)
    if not _DECIMAL.fullmatch(text):
        raise RestoreError(name, field, f"not an unsigned integer: {text!r}")
    value = int(text)
    if value < 1:
        raise RestoreError(name, field, f"must be at least 1, got {value}")
    return value


def _parse_rate(name: str, record: dict[str, str]) -> float:
    text = _field(name, record, FIELD_P)
    try:
        value = float(text)
    except ValueError:
        raise RestoreError(name, FIELD_P, f"not a number: {text!r}") from None
    if not math.isfinite(value) or not 0.0 < value < 1.0:
        raise RestoreError(name, FIELD_P, f"must be in (0, 1), got {text!r}")
    return value


def decode_record(
    name: str, raw: dict[Any, Any]
) -> tuple[FilterParameters, list[ShardDescriptor]]:
    """
    Parse a metadata hash as returned by HGETALL.

    Keys and values may be bytes or str depending on the client's
    decode_responses setting.

    Raises:
        RestoreError: If any field is missing or malformed
    """
    try:
        record = {_text(key): _text(value) for key, value in raw.items()}
    except UnicodeDecodeError as e:
        raise RestoreError(name, "record", f"not valid UTF-8: {e}") from e

    stored_name = record.get(FIELD_NAME, name)
    if stored_name != name:
        raise RestoreError(name, FIELD_NAME, f"record belongs to {stored_name!r}")

    n = _parse_count(name, record, FIELD_N)
    p = _parse_rate(name, record)
    m = _parse_count(name, record, FIELD_M)
    k = _parse_count(name, record, FIELD_K)

    try:
        shards = _shard_list.validate_json(_field(name, record, FIELD_PARTS))
    except ValidationError as e:
        raise RestoreError(name, FIELD_PARTS, f"malformed shard list: {e}") from e
    if not shards:
        raise RestoreError(name, FIELD_PARTS, "empty shard list")

    return FilterParameters(name=name, n=n, p=p, m=m, k=k), shards


async def save_metadata(
    client: redis.Redis, params: FilterParameters, shards: list[ShardDescriptor]
) -> None:
    """
    Write the metadata record.

    Raises:
        StorageError: If Redis rejects the write
    """
    try:
        await client.hset(params.name, mapping=encode_record(params, shards))
    except RedisError as e:
        raise StorageError("save metadata", f"{params.name}: {e}") from e
    logger.debug(f"Saved metadata for '{params.name}' ({len(shards)} shards)")


async def load_metadata(
    client: redis.Redis, name: str
) -> tuple[FilterParameters, list[ShardDescriptor]]:
    """
    Read and parse the metadata record.

    Raises:
        NotFoundError: If no record exists under name
        RestoreError: If the record is malformed
        StorageError: If Redis fails
    """
    try:
        raw = await client.hgetall(name)
    except RedisError as e:
        raise StorageError("load metadata", f"{name}: {e}") from e

    if not raw:
        raise NotFoundError(name)
    return decode_record(name, raw)
