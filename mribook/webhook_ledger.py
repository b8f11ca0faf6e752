"""
Processed webhook ledger
Remembers which payment webhook deliveries were already applied so redeliveries
are acknowledged without settling twice. Entries live in Redis when it is
reachable and in process memory otherwise.
"""

import json
import logging
import time
from threading import Lock
from typing import Any, Callable, Optional

import redis

from .redis_client import get_optional_redis_client

logger = logging.getLogger(__name__)

KEY_PREFIX = "webhook_processed"
DEFAULT_TTL_SECONDS = 86400


class WebhookLedger:
    def __init__(
        self,
        client_factory: Callable[[], Any] = get_optional_redis_client,
        ttl: int = DEFAULT_TTL_SECONDS,
    ):
        self.client_factory = client_factory
        self.ttl = ttl
        # {key: (expires_at, result)}
        self._local: dict[str, tuple[float, Any]] = {}
        self._lock = Lock()

    @staticmethod
    def key(webhook_id: str) -> str:
        return f"{KEY_PREFIX}:{webhook_id}"

    def _local_get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._local.get(key)
            if entry is None:
                return None
            expires_at, result = entry
            if expires_at <= time.time():
                del self._local[key]
                return None
            return result

    def processed_result(self, webhook_id: str) -> Optional[Any]:
        """Stored outcome of an earlier delivery, or None if this id is new"""
        key = self.key(webhook_id)
        client = self.client_factory()
        if client is not None:
            try:
                value = client.get(key)
                if value:
                    return json.loads(value)
            except (redis.RedisError, ValueError) as e:
                logger.error(f"❌ Webhook ledger lookup failed for {webhook_id}: {e}")
        return self._local_get(key)

    def was_processed(self, webhook_id: str) -> bool:
        return self.processed_result(webhook_id) is not None

    def mark_processed(self, webhook_id: str, result: Any = True) -> None:
        key = self.key(webhook_id)
        now = time.time()
        with self._lock:
            for stale in [k for k, (expires_at, _) in self._local.items() if expires_at <= now]:
                del self._local[stale]
            self._local[key] = (now + self.ttl, result)

        client = self.client_factory()
        if client is None:
            return
        try:
            client.setex(key, self.ttl, json.dumps(result))
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"⚠️ Webhook {webhook_id} recorded in memory only: {e}")


webhook_ledger = WebhookLedger()
