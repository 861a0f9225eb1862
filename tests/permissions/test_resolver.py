"""Tests for the layered authorize() check and effective permissions."""

import itertools

import pytest

from dockhand.core.models import Actor, GrantClass, GrantScope, Operation
from dockhand.permissions.matrix import PermissionMatrix
from dockhand.permissions.resolver import authorize, effective_permissions

WORKLOADS = ["web", "db"]
SUBJECTS = [("u1", GrantScope.USER), ("ops", GrantScope.ROLE)]


def _all_checks(matrix: PermissionMatrix, actor: Actor) -> dict[tuple[Operation, str], bool]:
    return {(op, name): authorize(matrix, actor, op, name) for op in Operation for name in WORKLOADS}


class TestAuthorize:
    def test_start_grant_does_not_cover_stop(self):
        matrix = PermissionMatrix(admin_ids=[], user_start_grants={"u1": ["web"]})
        actor = Actor.of("u1")
        assert authorize(matrix, actor, Operation.START, "web")
        assert not authorize(matrix, actor, Operation.STOP, "web")

    @pytest.mark.parametrize("op", [Operation.STOP, Operation.RESTART, Operation.EXEC, Operation.REMEDIATE])
    def test_stop_grant_covers_stop_class(self, op):
        matrix = PermissionMatrix(user_stop_grants={"u1": ["web"]})
        assert authorize(matrix, Actor.of("u1"), op, "web")
        assert not authorize(matrix, Actor.of("u1"), Operation.START, "web")

    def test_admin_allows_everything(self):
        matrix = PermissionMatrix(admin_ids=["a1"])
        assert all(_all_checks(matrix, Actor.of("a1")).values())

    def test_any_role_matches(self):
        matrix = PermissionMatrix(role_start_grants={"ops": ["db"]})
        assert authorize(matrix, Actor.of("u9", ["dev", "ops"]), Operation.START, "db")
        assert not authorize(matrix, Actor.of("u9", ["dev"]), Operation.START, "db")

    def test_grant_is_per_workload_name(self):
        matrix = PermissionMatrix(user_start_grants={"u1": ["web"]})
        assert not authorize(matrix, Actor.of("u1"), Operation.START, "db")

    def test_user_grant_does_not_leak_to_role_with_same_id(self):
        matrix = PermissionMatrix(user_start_grants={"ops": ["web"]})
        assert not authorize(matrix, Actor.of("u1", ["ops"]), Operation.START, "web")

    def test_no_grants_denies_everything(self, matrix):
        stranger = Actor.of("stranger", ["guests"])
        assert not any(_all_checks(matrix, stranger).values())


class TestMonotonicity:
    """Adding a grant never removes access; removing one never adds it."""

    BASE = PermissionMatrix(user_stop_grants={"u1": ["db"]}, role_start_grants={"ops": ["web"]})

    @pytest.mark.parametrize(
        "subject, workload, grant_class",
        [(s, w, c) for (s, w, c) in itertools.product(SUBJECTS, WORKLOADS, GrantClass)],
    )
    def test_grant_then_revoke(self, subject, workload, grant_class):
        subject_id, scope = subject
        actor = Actor.of("u1", ["ops"])
        matrix = self.BASE.model_copy(deep=True)
        before = _all_checks(matrix, actor)

        added = matrix.grant(subject_id, workload, grant_class, scope)
        granted = _all_checks(matrix, actor)
        assert all(granted[key] for key, allowed in before.items() if allowed)

        matrix.revoke(subject_id, workload, grant_class, scope)
        revoked = _all_checks(matrix, actor)
        assert all(granted[key] for key, allowed in revoked.items() if allowed)
        if added:
            assert revoked == before


class TestEffectivePermissions:
    def test_merges_user_and_role_grants_in_order(self):
        matrix = PermissionMatrix(
            user_start_grants={"u1": ["web"]},
            role_start_grants={"b-role": ["db", "web"], "a-role": ["cache"]},
            role_stop_grants={"a-role": ["cache"]},
        )
        perms = effective_permissions(matrix, Actor.of("u1", ["b-role", "a-role"]))
        assert perms.start == ("web", "cache", "db")
        assert perms.stop == ("cache",)
        assert not perms.is_admin

    def test_admin_flag(self):
        perms = effective_permissions(PermissionMatrix(admin_ids=["a1"]), Actor.of("a1"))
        assert perms.is_admin
        assert not perms.is_empty

    def test_render_empty(self):
        perms = effective_permissions(PermissionMatrix(), Actor.of("u1"))
        assert perms.is_empty
        assert perms.render() == "Your container permissions:\nYou do not have any permissions set."

    def test_render_sections(self):
        matrix = PermissionMatrix(user_start_grants={"u1": ["web"]}, user_stop_grants={"u1": ["db"]})
        rendered = effective_permissions(matrix, Actor.of("u1")).render()
        assert "Start permissions:\nweb" in rendered
        assert "Stop/Restart permissions:\ndb" in rendered

    def test_render_admin_lists_available(self):
        perms = effective_permissions(PermissionMatrix(admin_ids=["a1"]), Actor.of("a1"))
        rendered = perms.render(["web", "db"])
        assert "You are an admin" in rendered
        assert rendered.endswith("Available containers:\nweb\ndb")
