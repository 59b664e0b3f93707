"""
Redis-backed mutual exclusion for refunds.

Row locks (select_for_update) serialize notification handling inside a
single transaction. A refund, however, spans two transactions with a
gateway call in between, so it is guarded by a lock that outlives the
database transaction:

    from payments.locks import DistributedLock, refund_lock_key

    with DistributedLock(refund_lock_key(order.pk), ttl=60):
        ...

The lock is token-owned: only the holder can release it, and it expires
after `ttl` seconds if the holder dies.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING

from django.conf import settings

from django_redis import get_redis_connection

from payments.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis


logger = logging.getLogger(__name__)


def refund_lock_key(order_id: Any) -> str:
    return f"refund:order:{order_id}"


class DistributedLock:
    """
    Redis SET NX lock with TTL and token ownership.

    Args:
        key: Lock identifier (stored as "lock:<key>")
        ttl: Seconds before the lock expires on its own
            (default: settings.PAYMENTS_REFUND_LOCK_TTL)
        blocking: Wait for the lock instead of failing immediately
        timeout: Maximum wait in seconds when blocking

    Raises:
        LockAcquisitionError: From acquire() or on context entry when the
            lock is held elsewhere
    """

    # Delete only if we still own the key
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    POLL_INTERVAL = 0.05

    def __init__(
        self,
        key: str,
        ttl: int | None = None,
        blocking: bool = True,
        timeout: float = 5.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl or getattr(settings, "PAYMENTS_REFUND_LOCK_TTL", 60)
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def acquire(self) -> bool:
        token = uuid.uuid4().hex
        deadline = time.monotonic() + (self.timeout if self.blocking else 0)

        while True:
            if self.redis.set(self.key, token, nx=True, ex=self.ttl):
                self._token = token
                return True
            if time.monotonic() >= deadline:
                break
            time.sleep(self.POLL_INTERVAL)

        logger.warning(
            "Lock contention",
            extra={"lock_key": self.key, "timeout": self.timeout},
        )
        raise LockAcquisitionError(
            f"Lock '{self.key}' is held by another process",
            details={"key": self.key},
        )

    def release(self) -> bool:
        """Release the lock if we own it. Safe to call more than once."""
        if self._token is None:
            return False

        released = self.redis.eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        if not released:
            logger.warning("Lock expired before release", extra={"lock_key": self.key})
        return bool(released)

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False


__all__ = ["DistributedLock", "refund_lock_key"]
