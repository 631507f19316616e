"""
Redis client utilities for condocore.

Provides a lazy-initialized Redis client and the short-lived claim keys used
to stop concurrent redeliveries of the same webhook from being processed twice.
"""

import functools
import logging

import redis

from condocore.settings import get_settings

logger = logging.getLogger(__name__)


@functools.lru_cache()
def get_redis_client() -> redis.Redis:
    """
    Get Redis client (cached).

    This function lazily initializes the Redis client to avoid import-time connections.
    """
    return redis.from_url(get_settings().REDIS_URL, decode_responses=True)


def claim_key(namespace: str, key: str) -> str:
    return f"claim:{namespace}:{key}"


def try_claim(
    client: redis.Redis,
    namespace: str,
    key: str,
    ttl_seconds: int,
) -> bool | None:
    """
    Atomically claim a key for processing.

    Args:
        client: Redis client
        namespace: Claim namespace (e.g. "inbound:<tenant_id>")
        key: Item identifier (e.g. provider message SID)
        ttl_seconds: Claim lifetime

    Returns:
        True if this caller won the claim, False if someone else holds it,
        None if Redis could not be reached.
    """
    try:
        won = client.set(claim_key(namespace, key), "1", nx=True, ex=ttl_seconds)
        return bool(won)
    except redis.RedisError as e:
        logger.warning(
            f"Redis claim unavailable: {e}",
            extra={"namespace": namespace, "key": key},
        )
        return None


def release_claim(client: redis.Redis, namespace: str, key: str) -> None:
    """Release a claim so a later redelivery can be processed again."""
    try:
        client.delete(claim_key(namespace, key))
    except redis.RedisError as e:
        logger.warning(
            f"Failed to release Redis claim: {e}",
            extra={"namespace": namespace, "key": key},
        )
