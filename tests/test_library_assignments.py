"""
Unit tests for librarian library assignments.
"""
import pytest

from rbac.exceptions import NotFoundError, ValidationError
from rbac.schemas import Role
from storage.interface import Kind, QueryFilter
from tests.conftest import add_library, add_user


@pytest.fixture
def catalog(store):
    """Three libraries."""
    return [add_library(store, lib_id).id for lib_id in ("lib-a", "lib-b", "lib-c")]


class TestAssignLibrariesValidation:

    def test_missing_user(self, store, libraries, catalog):
        store.reset_calls()

        with pytest.raises(NotFoundError, match="User not found"):
            libraries.assign_libraries("nobody", ["lib-a"])

        assert store.writes == []

    @pytest.mark.parametrize("role", [Role.USER, Role.ADMIN])
    def test_non_librarian_rejected(self, store, libraries, catalog, role):
        user = add_user(store, "someone", role)
        store.reset_calls()

        with pytest.raises(ValidationError) as exc_info:
            libraries.assign_libraries(user.id, ["lib-a"])

        assert exc_info.value.message == "Can only assign libraries to librarians"
        assert store.writes == []

    def test_unknown_library(self, store, libraries, librarian, catalog):
        store.reset_calls()

        with pytest.raises(ValidationError) as exc_info:
            libraries.assign_libraries(librarian.id, ["lib-x"])

        assert str(exc_info.value) == "Invalid library IDs: lib-x"
        assert store.writes == []

    def test_unknown_libraries_listed_once_in_input_order(self, libraries, librarian, catalog):
        with pytest.raises(ValidationError) as exc_info:
            libraries.assign_libraries(librarian.id, ["lib-z", "lib-a", "lib-y", "lib-z"])

        assert exc_info.value.message == "Invalid library IDs: lib-z, lib-y"

    def test_failed_assignment_keeps_previous_set(self, libraries, librarian, catalog):
        libraries.assign_libraries(librarian.id, ["lib-a"])

        with pytest.raises(ValidationError):
            libraries.assign_libraries(librarian.id, ["lib-b", "lib-x"])

        assert libraries.get_assigned_libraries(librarian.id) == ["lib-a"]


class TestAssignLibraries:

    def test_round_trip(self, libraries, librarian, catalog):
        stored = libraries.assign_libraries(librarian.id, ["lib-c", "lib-a"])

        assert stored == ["lib-c", "lib-a"]
        assert set(libraries.get_assigned_libraries(librarian.id)) == {"lib-a", "lib-c"}

    def test_full_replacement(self, libraries, librarian, catalog):
        libraries.assign_libraries(librarian.id, ["lib-a", "lib-b"])
        libraries.assign_libraries(librarian.id, ["lib-c"])

        assert libraries.get_assigned_libraries(librarian.id) == ["lib-c"]

    def test_empty_list_revokes_all(self, store, libraries, librarian, catalog):
        libraries.assign_libraries(librarian.id, ["lib-a", "lib-b"])

        libraries.assign_libraries(librarian.id, [])

        assert libraries.get_assigned_libraries(librarian.id) == []
        rows = store.query(Kind.LIBRARY_ASSIGNMENT, filters=[QueryFilter("user_id", "=", librarian.id)])
        assert rows == []

    def test_duplicates_stored_once(self, store, libraries, librarian, catalog):
        libraries.assign_libraries(librarian.id, ["lib-a", "lib-a", "lib-b"])

        rows = store.query(Kind.LIBRARY_ASSIGNMENT, filters=[QueryFilter("user_id", "=", librarian.id)])
        assert sorted(r["library_id"] for r in rows) == ["lib-a", "lib-b"]

    def test_rows_record_who_and_when(self, store, libraries, librarian, catalog, clock):
        libraries.assign_libraries(librarian.id, ["lib-a"], assigned_by="admin-1")

        row = store.query(Kind.LIBRARY_ASSIGNMENT)[0]
        assert row["assigned_by"] == "admin-1"
        assert row["assigned_at"] == clock.now

    def test_other_librarians_untouched(self, store, libraries, librarian, catalog):
        other = add_user(store, "librarian-2", Role.LIBRARIAN)
        libraries.assign_libraries(other.id, ["lib-b"])

        libraries.assign_libraries(librarian.id, ["lib-a"])
        libraries.assign_libraries(librarian.id, [])

        assert libraries.get_assigned_libraries(other.id) == ["lib-b"]

    def test_failed_save_keeps_previous_set(self, store, libraries, librarian, catalog, monkeypatch):
        libraries.assign_libraries(librarian.id, ["lib-a"])

        def broken(kind, entities):
            raise RuntimeError("write timeout")

        monkeypatch.setattr(store, "batch_save", broken)

        with pytest.raises(RuntimeError):
            libraries.assign_libraries(librarian.id, ["lib-b"])

        assert libraries.get_assigned_libraries(librarian.id) == ["lib-a"]

    def test_new_rows_written_before_old_rows_removed(self, store, libraries, librarian, catalog):
        libraries.assign_libraries(librarian.id, ["lib-a"])
        store.reset_calls()

        libraries.assign_libraries(librarian.id, ["lib-b"])

        assert [c[0] for c in store.writes] == ["batch_save", "batch_delete"]


class TestGetAssignedLibraries:

    def test_unknown_user(self, libraries):
        assert libraries.get_assigned_libraries("nobody") == []

    def test_user_without_rows(self, libraries, librarian):
        assert libraries.get_assigned_libraries(librarian.id) == []

    def test_ignores_current_role(self, roles, libraries, admin, librarian, catalog):
        libraries.assign_libraries(librarian.id, ["lib-a", "lib-b"])
        roles.assign_role(admin.id, librarian.id, Role.USER)

        assert libraries.get_assigned_libraries(librarian.id) == ["lib-a", "lib-b"]
