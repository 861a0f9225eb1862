"""
Permission resolver — the one place authorization is decided.

``authorize`` is pure over (matrix, actor, operation, workload name) and
short-circuits on the first match:

    ::

        1. actor.id in admin_ids                          → allow
        2. name in user grants[actor.id] for the class    → allow
        3. name in role grants[r] for any r in actor.roles → allow
        4. otherwise                                       → deny

    The class is ``start`` for start and ``stop`` for stop, restart, exec
    and the remediation workflow (checked against its primary workload).

Tags:
    permissions, authorization, rbac, dockhand
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dockhand.core.models import Actor, GrantClass, GrantScope, Operation
from dockhand.permissions.matrix import PermissionMatrix


def authorize(
    matrix: PermissionMatrix,
    actor: Actor,
    operation: Operation,
    workload_name: str,
) -> bool:
    """Return True if ``actor`` may run ``operation`` on ``workload_name``."""
    if matrix.is_admin(actor.id):
        return True

    grant_class = operation.grant_class
    if matrix.has_grant(actor.id, workload_name, grant_class, GrantScope.USER):
        return True

    return any(
        matrix.has_grant(role_id, workload_name, grant_class, GrantScope.ROLE)
        for role_id in actor.role_ids
    )


@dataclass(frozen=True)
class EffectivePermissions:
    """Everything one actor can do, merged across user and role grants."""

    actor_id: str
    is_admin: bool
    start: tuple[str, ...] = field(default_factory=tuple)
    stop: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.is_admin and not self.start and not self.stop

    def render(self, available: list[str] | None = None) -> str:
        lines = ["Your container permissions:"]
        if self.is_admin:
            lines.append("You are an admin. You have full access to all containers.")
            if available:
                lines.append("")
                lines.append("Available containers:")
                lines.extend(available)
            return "\n".join(lines)
        if self.is_empty:
            lines.append("You do not have any permissions set.")
            return "\n".join(lines)
        if self.start:
            lines.append("Start permissions:")
            lines.extend(self.start)
        if self.stop:
            if self.start:
                lines.append("")
            lines.append("Stop/Restart permissions:")
            lines.extend(self.stop)
        return "\n".join(lines)


def effective_permissions(matrix: PermissionMatrix, actor: Actor) -> EffectivePermissions:
    """Merge an actor's user grants with the grants of every role it holds.

    User grants come first, then role grants in sorted role order; duplicates
    are dropped keeping the first occurrence.
    """
    merged: dict[GrantClass, list[str]] = {}
    for grant_class in GrantClass:
        names = list(matrix.grant_map(grant_class, GrantScope.USER).get(actor.id, ()))
        role_grants = matrix.grant_map(grant_class, GrantScope.ROLE)
        for role_id in sorted(actor.role_ids):
            names.extend(role_grants.get(role_id, ()))
        merged[grant_class] = list(dict.fromkeys(names))

    return EffectivePermissions(
        actor_id=actor.id,
        is_admin=matrix.is_admin(actor.id),
        start=tuple(merged[GrantClass.START]),
        stop=tuple(merged[GrantClass.STOP]),
    )


__all__ = ["EffectivePermissions", "authorize", "effective_permissions"]
