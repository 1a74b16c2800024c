"""
SQLAlchemy models backing the entity store.

Tables:
  - users: accounts and their current role
  - libraries: libraries referenced by librarian assignments
  - library_assignments: librarian <-> library edge table
  - audit_entries: immutable role change trail
"""

from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.orm import declarative_base

from storage.interface import Kind

Base = declarative_base()


class UserRecord(Base):
    """User accounts with their role"""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="USER", index=True)  # USER, LIBRARIAN, ADMIN
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    updated_by = Column(String(64), nullable=True)


class LibraryRecord(Base):
    """Libraries (managed elsewhere, read here for id validation)"""

    __tablename__ = "libraries"

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(64), nullable=True)


class LibraryAssignmentRecord(Base):
    """Association rows between librarians and libraries"""

    __tablename__ = "library_assignments"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    library_id = Column(String(64), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=False)
    assigned_by = Column(String(64), nullable=True)


class AuditEntryRecord(Base):
    """Role change audit trail (rows are never updated)"""

    __tablename__ = "audit_entries"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    action = Column(String(50), nullable=False, default="role_change")
    old_role = Column(String(20), nullable=False)
    new_role = Column(String(20), nullable=False)
    changed_by = Column(String(64), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    ip_address = Column(String(45), nullable=True)  # IPv4 or IPv6

    __table_args__ = (
        Index("ix_audit_entries_user_timestamp", "user_id", "timestamp"),
    )


# Entity kind -> ORM model
KIND_MODELS = {
    Kind.USER: UserRecord,
    Kind.LIBRARY: LibraryRecord,
    Kind.LIBRARY_ASSIGNMENT: LibraryAssignmentRecord,
    Kind.AUDIT_ENTRY: AuditEntryRecord,
}
