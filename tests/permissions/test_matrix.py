"""Tests for PermissionMatrix grant bookkeeping."""

from dockhand.core.models import GrantClass, GrantScope
from dockhand.permissions.matrix import PermissionMatrix


class TestValidation:
    def test_empty_lists_pruned_on_load(self):
        matrix = PermissionMatrix.model_validate(
            {"user_start_grants": {"u1": [], "u2": ["web"]}, "role_stop_grants": {"ops": []}}
        )
        assert matrix.user_start_grants == {"u2": ["web"]}
        assert matrix.role_stop_grants == {}

    def test_duplicates_removed_keeping_order(self):
        matrix = PermissionMatrix(
            admin_ids=["a", "b", "a"],
            user_stop_grants={"u1": ["web", "db", "web"]},
        )
        assert matrix.admin_ids == ["a", "b"]
        assert matrix.user_stop_grants == {"u1": ["web", "db"]}


class TestGrant:
    def test_grant_adds_entry(self):
        matrix = PermissionMatrix()
        assert matrix.grant("u1", "web", GrantClass.START, GrantScope.USER)
        assert matrix.user_start_grants == {"u1": ["web"]}
        assert matrix.has_grant("u1", "web", GrantClass.START, GrantScope.USER)

    def test_grant_is_idempotent(self):
        matrix = PermissionMatrix()
        matrix.grant("ops", "db", GrantClass.STOP, GrantScope.ROLE)
        assert not matrix.grant("ops", "db", GrantClass.STOP, GrantScope.ROLE)
        assert matrix.role_stop_grants == {"ops": ["db"]}

    def test_grant_targets_one_map_only(self):
        matrix = PermissionMatrix()
        matrix.grant("u1", "web", GrantClass.STOP, GrantScope.ROLE)
        assert matrix.role_stop_grants == {"u1": ["web"]}
        assert matrix.user_stop_grants == {}
        assert matrix.role_start_grants == {}


class TestRevoke:
    def test_revoke_last_entry_deletes_subject(self):
        matrix = PermissionMatrix(user_start_grants={"u1": ["web"]})
        assert matrix.revoke("u1", "web", GrantClass.START, GrantScope.USER)
        assert "u1" not in matrix.user_start_grants

    def test_revoke_keeps_remaining_entries(self):
        matrix = PermissionMatrix(user_start_grants={"u1": ["web", "db"]})
        matrix.revoke("u1", "web", GrantClass.START, GrantScope.USER)
        assert matrix.user_start_grants == {"u1": ["db"]}

    def test_revoke_missing_grant_is_noop(self):
        matrix = PermissionMatrix(user_start_grants={"u1": ["web"]})
        before = matrix.model_dump()
        assert not matrix.revoke("u1", "db", GrantClass.START, GrantScope.USER)
        assert not matrix.revoke("u9", "web", GrantClass.START, GrantScope.USER)
        assert matrix.model_dump() == before

    def test_revoke_never_creates_empty_list(self):
        matrix = PermissionMatrix()
        matrix.revoke("u1", "web", GrantClass.STOP, GrantScope.USER)
        assert matrix.user_stop_grants == {}


class TestAdmins:
    def test_add_and_remove(self):
        matrix = PermissionMatrix()
        assert matrix.add_admin("a1")
        assert not matrix.add_admin("a1")
        assert matrix.is_admin("a1")
        assert matrix.remove_admin("a1")
        assert not matrix.remove_admin("a1")
        assert matrix.admin_ids == []


class TestGrantsFor:
    def test_lists_both_classes(self):
        matrix = PermissionMatrix(
            role_start_grants={"ops": ["web"]},
            role_stop_grants={"ops": ["web", "db"]},
        )
        assert matrix.grants_for("ops", GrantScope.ROLE) == {
            GrantClass.START: ["web"],
            GrantClass.STOP: ["web", "db"],
        }

    def test_unknown_subject_is_empty(self):
        assert PermissionMatrix().grants_for("nobody", GrantScope.USER) == {
            GrantClass.START: [],
            GrantClass.STOP: [],
        }

    def test_returns_copies(self):
        matrix = PermissionMatrix(user_start_grants={"u1": ["web"]})
        matrix.grants_for("u1", GrantScope.USER)[GrantClass.START].append("db")
        assert matrix.user_start_grants == {"u1": ["web"]}
