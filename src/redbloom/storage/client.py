"""Redis connection helper."""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from redbloom.core.config import Settings, get_settings
from redbloom.core.errors import StorageError

logger = logging.getLogger(__name__)


async def connect(settings: Settings | None = None) -> redis.Redis:
    """
    Open a Redis client and verify it answers.

    Responses are left as bytes; the metadata decoder handles both forms.

    Args:
        settings: Configuration (None = get_settings())

    Returns:
        Connected asyncio Redis client

    Raises:
        StorageError: If the server cannot be reached
    """
    settings = settings or get_settings()
    client = redis.from_url(
        settings.redis_url,
        decode_responses=False,
        socket_timeout=settings.socket_timeout,
        socket_connect_timeout=settings.socket_timeout,
    )
    try:
        await client.ping()
    except RedisError as e:
        await client.aclose()
        raise StorageError("connect", f"{settings.redis_url}: {e}") from e

    logger.info(f"Redis connected: {settings.redis_url}")
    return client
