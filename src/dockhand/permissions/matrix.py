"""
Permission matrix — who may start or stop which workloads.

The matrix is a pydantic model so the JSON store can validate it on load and
dump it back unchanged.  Grant lists hold workload *names*; existence of a
name in the runtime is the caller's concern.

Invariant: a grant list is either absent or non-empty.  ``revoke`` deletes a
subject's key when its last entry goes, and empty lists found on load are
dropped.

    ::

        PermissionMatrix
          admin_ids            [actor ids]             full access
          user_start_grants    {actor id: [names]}
          user_stop_grants     {actor id: [names]}     also restart/exec/remediate
          role_start_grants    {role id:  [names]}
          role_stop_grants     {role id:  [names]}

Tags:
    permissions, grants, pydantic, dockhand
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from dockhand.core.models import GrantClass, GrantScope

GrantMap = dict[str, list[str]]


class PermissionMatrix(BaseModel):
    """Admin list plus per-user and per-role start/stop grants."""

    admin_ids: list[str] = Field(default_factory=list)
    user_start_grants: GrantMap = Field(default_factory=dict)
    user_stop_grants: GrantMap = Field(default_factory=dict)
    role_start_grants: GrantMap = Field(default_factory=dict)
    role_stop_grants: GrantMap = Field(default_factory=dict)

    @field_validator(
        "user_start_grants",
        "user_stop_grants",
        "role_start_grants",
        "role_stop_grants",
    )
    @classmethod
    def _prune_empty(cls, value: GrantMap) -> GrantMap:
        pruned: GrantMap = {}
        for subject, names in value.items():
            unique = list(dict.fromkeys(names))
            if unique:
                pruned[subject] = unique
        return pruned

    @field_validator("admin_ids")
    @classmethod
    def _unique_admins(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    # ── Lookup ───────────────────────────────────────────────────

    def grant_map(self, grant_class: GrantClass, scope: GrantScope) -> GrantMap:
        """The live dict backing one (class, scope) pair."""
        if scope is GrantScope.USER:
            return self.user_start_grants if grant_class is GrantClass.START else self.user_stop_grants
        return self.role_start_grants if grant_class is GrantClass.START else self.role_stop_grants

    def is_admin(self, actor_id: str) -> bool:
        return actor_id in self.admin_ids

    def has_grant(
        self,
        subject_id: str,
        workload_name: str,
        grant_class: GrantClass,
        scope: GrantScope,
    ) -> bool:
        return workload_name in self.grant_map(grant_class, scope).get(subject_id, ())

    def grants_for(self, subject_id: str, scope: GrantScope) -> dict[GrantClass, list[str]]:
        """Start and stop lists of one user or role (empty when absent)."""
        return {
            grant_class: list(self.grant_map(grant_class, scope).get(subject_id, ()))
            for grant_class in GrantClass
        }

    # ── Mutation ─────────────────────────────────────────────────

    def grant(
        self,
        subject_id: str,
        workload_name: str,
        grant_class: GrantClass,
        scope: GrantScope,
    ) -> bool:
        """Add a grant.  Returns False when it already existed."""
        names = self.grant_map(grant_class, scope).setdefault(subject_id, [])
        if workload_name in names:
            return False
        names.append(workload_name)
        return True

    def revoke(
        self,
        subject_id: str,
        workload_name: str,
        grant_class: GrantClass,
        scope: GrantScope,
    ) -> bool:
        """Remove a grant.  Returns False when there was nothing to remove."""
        grants = self.grant_map(grant_class, scope)
        names = grants.get(subject_id)
        if not names or workload_name not in names:
            return False
        remaining = [n for n in names if n != workload_name]
        if remaining:
            grants[subject_id] = remaining
        else:
            del grants[subject_id]
        return True

    def add_admin(self, actor_id: str) -> bool:
        if actor_id in self.admin_ids:
            return False
        self.admin_ids.append(actor_id)
        return True

    def remove_admin(self, actor_id: str) -> bool:
        if actor_id not in self.admin_ids:
            return False
        self.admin_ids = [a for a in self.admin_ids if a != actor_id]
        return True


__all__ = ["GrantMap", "PermissionMatrix"]
