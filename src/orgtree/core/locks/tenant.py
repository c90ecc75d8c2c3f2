"""Tenant lock backends.

Every structural change to a tenant's tree (create under a parent,
rename, move, retire, repair) runs while holding that tenant's lock,
so two changes to the same tree never interleave. Reads never take
the lock.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from functools import lru_cache
from typing import Annotated, Protocol
from uuid import UUID

import structlog
from fastapi import Depends
from redis.exceptions import LockError

from orgtree.config import settings
from orgtree.core.cache.redis import redis_client
from orgtree.core.constants import TENANT_LOCK_PREFIX
from orgtree.core.errors import ServiceUnavailableError


logger = structlog.get_logger()


class TenantLock(Protocol):
    """Mutual-exclusion token keyed by tenant id."""

    def hold(self, tenant_id: UUID) -> AbstractAsyncContextManager[None]:
        """Return a context manager that holds the tenant's lock."""
        ...


class LocalTenantLock:
    """In-process lock, one asyncio.Lock per tenant.

    Only serializes callers inside a single process; use
    RedisTenantLock when several workers share a database. A tenant's
    lock is dropped once no caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._users: Counter[UUID] = Counter()

    @asynccontextmanager
    async def hold(self, tenant_id: UUID) -> AsyncIterator[None]:
        lock = self._locks.setdefault(tenant_id, asyncio.Lock())
        self._users[tenant_id] += 1
        try:
            async with lock:
                logger.debug("tenant_lock_acquired", tenant_id=str(tenant_id), backend="local")
                yield
        finally:
            self._users[tenant_id] -= 1
            if not self._users[tenant_id]:
                del self._users[tenant_id]
                del self._locks[tenant_id]

    @property
    def tracked_tenants(self) -> int:
        """Number of tenants whose lock is currently held or awaited."""
        return len(self._locks)


class RedisTenantLock:
    """Distributed lease built on redis-py's Lock.

    Attributes:
        timeout: Lease length in seconds; the key expires if the holder dies
        wait: How long to block waiting for the lease before giving up
        prefix: Key prefix for lock keys
    """

    def __init__(
        self,
        timeout: float,
        wait: float,
        prefix: str = TENANT_LOCK_PREFIX,
    ) -> None:
        self.timeout = timeout
        self.wait = wait
        self.prefix = prefix

    def _key(self, tenant_id: UUID) -> str:
        return f"{self.prefix}{tenant_id}"

    @asynccontextmanager
    async def hold(self, tenant_id: UUID) -> AsyncIterator[None]:
        """Hold the tenant lease for the duration of the block.

        Raises:
            ServiceUnavailableError: If the lease is not acquired in time
        """
        async with redis_client() as client:
            lock = client.lock(
                self._key(tenant_id),
                timeout=self.timeout,
                blocking_timeout=self.wait,
            )
            if not await lock.acquire():
                logger.warning(
                    "tenant_lock_timeout",
                    tenant_id=str(tenant_id),
                    waited_seconds=self.wait,
                )
                raise ServiceUnavailableError(
                    "Tenant hierarchy is busy, retry later",
                    error_code="tenant_locked",
                    details={"tenant_id": str(tenant_id)},
                )

            logger.debug("tenant_lock_acquired", tenant_id=str(tenant_id), backend="redis")
            try:
                yield
            finally:
                try:
                    await lock.release()
                except LockError:
                    # The work already committed; the lease ran out before release.
                    logger.error(
                        "tenant_lock_lease_expired",
                        tenant_id=str(tenant_id),
                        lease_seconds=self.timeout,
                    )


@lru_cache
def get_tenant_lock() -> TenantLock:
    """Return the process-wide tenant lock for the configured backend."""
    if settings.hierarchy_lock_backend == "redis":
        return RedisTenantLock(
            timeout=settings.hierarchy_lock_timeout_seconds,
            wait=settings.hierarchy_lock_wait_seconds,
        )
    return LocalTenantLock()


# Type alias for dependency injection
TenantLockDep = Annotated[TenantLock, Depends(get_tenant_lock)]
