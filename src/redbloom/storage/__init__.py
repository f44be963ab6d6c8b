"""Redis storage for bloom filters: connection, metadata record and the filter itself."""

from redbloom.storage.client import connect
from redbloom.storage.metadata import decode_record, encode_record, load_metadata, save_metadata
from redbloom.storage.redis_bloom import RedisBloomFilter

__all__ = [
    "RedisBloomFilter",
    "connect",
    "decode_record",
    "encode_record",
    "load_metadata",
    "save_metadata",
]
