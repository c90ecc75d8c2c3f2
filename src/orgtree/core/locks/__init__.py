"""Per-tenant mutual exclusion for structural hierarchy changes."""

from orgtree.core.locks.tenant import (
    LocalTenantLock,
    RedisTenantLock,
    TenantLock,
    TenantLockDep,
    get_tenant_lock,
)


__all__ = [
    "LocalTenantLock",
    "RedisTenantLock",
    "TenantLock",
    "TenantLockDep",
    "get_tenant_lock",
]
