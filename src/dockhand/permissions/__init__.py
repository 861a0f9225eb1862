"""Permissions: matrix, resolver and stores."""

from dockhand.permissions.matrix import PermissionMatrix
from dockhand.permissions.resolver import EffectivePermissions, authorize, effective_permissions
from dockhand.permissions.store import JsonPermissionStore, MemoryPermissionStore, PermissionStore

__all__ = [
    "EffectivePermissions",
    "JsonPermissionStore",
    "MemoryPermissionStore",
    "PermissionMatrix",
    "PermissionStore",
    "authorize",
    "effective_permissions",
]
