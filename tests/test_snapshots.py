"""
Unit tests for session snapshots and their signed tokens.
"""
import jwt
import pytest

from rbac.exceptions import NotFoundError
from rbac.role_config import Feature
from rbac.schemas import Role
from rbac.snapshots import ALGORITHM, SnapshotIssuer
from tests.conftest import TEST_SECRET, add_library


@pytest.fixture
def issuer(roles, libraries, clock):
    return SnapshotIssuer(roles, libraries, secret=TEST_SECRET, clock=clock)


class TestCapture:

    def test_captures_role_and_libraries(self, store, issuer, libraries, librarian, clock):
        add_library(store, "lib-a")
        add_library(store, "lib-b")
        libraries.assign_libraries(librarian.id, ["lib-b", "lib-a"])

        snap = issuer.capture(librarian.id)

        assert snap.user_id == librarian.id
        assert snap.role == Role.LIBRARIAN
        assert snap.library_ids == ["lib-a", "lib-b"]
        assert snap.captured_at == clock.now

    def test_unknown_user(self, issuer):
        with pytest.raises(NotFoundError):
            issuer.capture("nobody")


class TestTokens:

    def test_round_trip(self, issuer, admin):
        token = issuer.login(admin.id)

        snap = issuer.verify_token(token)

        assert snap is not None
        assert snap.user_id == admin.id
        assert snap.role == Role.ADMIN
        assert snap.library_ids == []

    def test_claims(self, issuer, member):
        payload = jwt.decode(issuer.login(member.id), TEST_SECRET, algorithms=[ALGORITHM])

        assert payload["sub"] == member.id
        assert payload["role"] == "USER"
        assert "exp" in payload

    def test_tampered_token(self, issuer, member):
        token = issuer.login(member.id)

        assert issuer.verify_token(token + "x") is None

    def test_wrong_secret(self, issuer, member):
        forged = jwt.encode(
            {"sub": member.id, "role": "ADMIN", "library_ids": [], "captured_at": "2026-10-01T12:00:00+00:00"},
            "some-other-secret-with-enough-length!!",
            algorithm=ALGORITHM
        )

        assert issuer.verify_token(forged) is None

    def test_missing_claims(self, issuer):
        token = jwt.encode({"sub": "user-1"}, TEST_SECRET, algorithm=ALGORITHM)

        assert issuer.verify_token(token) is None

    def test_expired(self, roles, libraries, member):
        issuer = SnapshotIssuer(roles, libraries, secret=TEST_SECRET, ttl_seconds=-10)

        assert issuer.verify_token(issuer.login(member.id)) is None

    def test_garbage(self, issuer):
        assert issuer.verify_token("not-a-jwt") is None


class TestSessionStaleness:
    """A role change reaches a session only at the next login."""

    def test_old_snapshot_keeps_old_permissions(self, issuer, roles, policy, admin, member):
        token = issuer.login(member.id)

        result = roles.assign_role(admin.id, member.id, Role.ADMIN)
        assert result.success

        stale = issuer.verify_token(token)
        assert stale.role == Role.USER
        assert not policy.can_access_feature(stale, Feature.USER_MANAGEMENT)

        fresh = issuer.verify_token(issuer.login(member.id))
        assert fresh.role == Role.ADMIN
        assert policy.can_access_feature(fresh, Feature.USER_MANAGEMENT)

    def test_library_reassignment_needs_new_login(self, store, issuer, libraries, policy, librarian):
        add_library(store, "lib-a")
        add_library(store, "lib-b")
        libraries.assign_libraries(librarian.id, ["lib-a"])
        token = issuer.login(librarian.id)

        libraries.assign_libraries(librarian.id, ["lib-b"])

        stale = issuer.verify_token(token)
        assert policy.can_access_feature(stale, Feature.MANAGE_INVENTORY, "lib-a")
        assert not policy.can_access_feature(stale, Feature.MANAGE_INVENTORY, "lib-b")


class TestIssuerConfig:

    def test_secret_required(self, roles, libraries):
        with pytest.raises(ValueError):
            SnapshotIssuer(roles, libraries, secret="")
