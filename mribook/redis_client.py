"""
Shared Redis connection
Used by the rate limiter and the webhook ledger. Both keep working in process
memory while Redis is unreachable, so callers use get_optional_redis_client().
"""

import logging
import os
import time
from typing import Optional

import redis

logger = logging.getLogger(__name__)

REDIS_RETRY_INTERVAL = 60

_client: Optional[redis.Redis] = None
_unavailable_until = 0.0


def _connect() -> redis.Redis:
    options = {
        "decode_responses": True,
        "socket_connect_timeout": 5,
        "socket_timeout": 5,
        "retry_on_timeout": True,
        "health_check_interval": 30,
    }

    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        host_part = redis_url.rsplit("@", 1)[-1] if "@" in redis_url else "****"
        logger.info(f"📡 Connecting to Redis via URL ({host_part})")
        return redis.from_url(redis_url, **options)

    host = os.getenv("REDIS_HOST", "localhost")
    port = int(os.getenv("REDIS_PORT", "6379"))
    logger.info(f"📡 Connecting to Redis at {host}:{port}")
    return redis.Redis(
        host=host,
        port=port,
        password=os.getenv("REDIS_PASSWORD"),
        db=int(os.getenv("REDIS_DB", "0")),
        ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
        **options,
    )


def get_redis_client() -> redis.Redis:
    """Connected client; raises if Redis cannot be reached"""
    global _client

    if _client is None:
        client = _connect()
        client.ping()
        _client = client
        logger.info("✅ Redis connected")
    return _client


def get_optional_redis_client() -> Optional[redis.Redis]:
    """Connected client, or None while Redis is down (reconnects at most once a minute)"""
    global _unavailable_until

    if _client is None and time.time() < _unavailable_until:
        return None
    try:
        return get_redis_client()
    except redis.RedisError as e:
        _unavailable_until = time.time() + REDIS_RETRY_INTERVAL
        logger.warning(f"⚠️ Redis unavailable, using in-memory state: {e}")
        return None
