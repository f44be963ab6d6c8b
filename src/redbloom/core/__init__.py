"""Core engine pieces: configuration, errors, sizing, layout and hashing."""

from redbloom.core.config import Settings, get_settings, reset_settings
from redbloom.core.errors import (
    AlreadyExistsError,
    HashExhaustedError,
    InvalidParameterError,
    NotFoundError,
    RedbloomError,
    RestoreError,
    StorageError,
)
from redbloom.core.hashing import hash_positions
from redbloom.core.params import calculate_params
from redbloom.core.partition import plan_shards, resolve_locations
from redbloom.core.types import MAX_SHARD_BITS, FilterParameters, Location, ShardDescriptor

__all__ = [
    "MAX_SHARD_BITS",
    "AlreadyExistsError",
    "FilterParameters",
    "HashExhaustedError",
    "InvalidParameterError",
    "Location",
    "NotFoundError",
    "RedbloomError",
    "RestoreError",
    "Settings",
    "ShardDescriptor",
    "StorageError",
    "calculate_params",
    "get_settings",
    "hash_positions",
    "plan_shards",
    "reset_settings",
    "resolve_locations",
]
