"""
redbloom - Bloom filters sharded across Redis bitmaps.

Many stateless processes can share one filter: it is created once under a
name and any process can re-attach to it by that name.

Quick Start:
    from redbloom import RedisBloomFilter, connect

    client = await connect()
    bf = await RedisBloomFilter.create(client, "users", n=100_000, p=0.01)
    await bf.add(b"alice")
    await bf.exists(b"alice")   # True
    await bf.exists(b"bob")     # False (almost certainly)
"""

__version__ = "0.1.0"

from redbloom.core.config import Settings, get_settings
from redbloom.core.errors import (
    AlreadyExistsError,
    HashExhaustedError,
    InvalidParameterError,
    NotFoundError,
    RedbloomError,
    RestoreError,
    StorageError,
)
from redbloom.core.params import calculate_params
from redbloom.core.types import FilterParameters, Location, ShardDescriptor
from redbloom.storage import RedisBloomFilter, connect

__all__ = [
    # Filter
    "RedisBloomFilter",
    "connect",
    "calculate_params",
    # Types
    "FilterParameters",
    "Location",
    "ShardDescriptor",
    # Config
    "Settings",
    "get_settings",
    # Errors
    "AlreadyExistsError",
    "HashExhaustedError",
    "InvalidParameterError",
    "NotFoundError",
    "RedbloomError",
    "RestoreError",
    "StorageError",
]
