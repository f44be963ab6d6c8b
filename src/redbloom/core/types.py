"""
Value records shared by the filter engine.

All records are frozen: once a filter is created (or restored) its parameters
and shard layout never change, so concurrent callers can read them freely.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

# Redis SETBIT accepts offsets below 2^32 (512 MB per string key)
MAX_SHARD_BITS = 1 << 32


@dataclass(frozen=True)
class FilterParameters:
    """Sizing of a bloom filter.

    n and p are what the caller asked for; m (bits) and k (hash count) are
    derived from them exactly once, at creation time.
    """

    name: str
    n: int
    p: float
    m: int
    k: int


class ShardDescriptor(BaseModel):
    """One bitmap key holding a slice of the filter's bit array.

    Serialized as ``{"Name": ..., "Max": ...}`` inside the metadata record.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(alias="Name", min_length=1)
    max_offset: int = Field(alias="Max", ge=0, lt=MAX_SHARD_BITS)


@dataclass(frozen=True)
class Location:
    """A single bit inside the sharded array."""

    shard_key: str
    offset: int
