"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest

from rbac.library_assignments import LibraryAssignmentManager
from rbac.role_manager import RoleAssignmentEngine
from rbac.schemas import Library, Role, User
from security.audit.audit_trail import AuditTrail
from security.policy.rbac import AccessPolicyEvaluator
from storage.interface import Kind
from storage.memory_store import InMemoryEntityStore

TEST_SECRET = "test-snapshot-secret-with-at-least-32-bytes"


class FrozenClock:
    """Clock returning a fixed, manually advanced instant"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class RecordingStore(InMemoryEntityStore):
    """In-memory store that records every call"""

    WRITES = ("save", "delete", "batch_save", "batch_delete")

    def __init__(self):
        super().__init__()
        self.calls = []

    def get(self, kind, entity_id):
        self.calls.append(("get", kind, entity_id))
        return super().get(kind, entity_id)

    def query(self, kind, filters=None, order_by=None, limit=None, offset=None):
        self.calls.append(("query", kind, None))
        return super().query(kind, filters, order_by, limit, offset)

    def save(self, kind, entity):
        self.calls.append(("save", kind, entity.get("id")))
        super().save(kind, entity)

    def delete(self, kind, entity_id):
        self.calls.append(("delete", kind, entity_id))
        super().delete(kind, entity_id)

    def batch_save(self, kind, entities):
        self.calls.append(("batch_save", kind, len(entities)))
        super().batch_save(kind, entities)

    def batch_delete(self, kind, entity_ids):
        self.calls.append(("batch_delete", kind, len(entity_ids)))
        super().batch_delete(kind, entity_ids)

    @property
    def writes(self):
        return [c for c in self.calls if c[0] in self.WRITES]

    def reset_calls(self):
        self.calls = []


def add_user(store, user_id: str, role: Role = Role.USER) -> User:
    """Helper to persist a user directly (users are created outside the core)."""
    user = User(id=user_id, email=f"{user_id}@example.com", name=user_id.title(), role=role)
    store.save(Kind.USER, user.model_dump())
    return user


def add_library(store, library_id: str) -> Library:
    """Helper to persist a library."""
    library = Library(id=library_id, name=f"Library {library_id}")
    store.save(Kind.LIBRARY, library.model_dump())
    return library


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def audit_trail(store, clock):
    return AuditTrail(store, clock=clock)


@pytest.fixture
def roles(store, audit_trail, clock):
    return RoleAssignmentEngine(store, audit_trail, clock=clock)


@pytest.fixture
def libraries(store, clock):
    return LibraryAssignmentManager(store, clock=clock)


@pytest.fixture
def policy():
    return AccessPolicyEvaluator()


@pytest.fixture
def admin(store):
    return add_user(store, "admin-1", Role.ADMIN)


@pytest.fixture
def second_admin(store):
    return add_user(store, "admin-2", Role.ADMIN)


@pytest.fixture
def member(store):
    return add_user(store, "user-1", Role.USER)


@pytest.fixture
def librarian(store):
    return add_user(store, "librarian-1", Role.LIBRARIAN)
