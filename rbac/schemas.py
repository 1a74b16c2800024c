"""
Pydantic schemas for the access-control core.

These schemas handle:
1. Validation of records read from the entity store
2. Serialization of records written back to it
3. Result/snapshot types returned to callers
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """
    The three user roles:
    - USER: borrow and browse
    - LIBRARIAN: manages the libraries assigned to them
    - ADMIN: full access, assigns roles
    """
    USER = "USER"
    LIBRARIAN = "LIBRARIAN"
    ADMIN = "ADMIN"


class User(BaseModel):
    """
    Application user. Created elsewhere with role USER; the role is only
    changed through RoleAssignmentEngine.assign_role.
    """
    id: str
    email: str
    name: str
    role: Role = Role.USER
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    updated_by: Optional[str] = None


class Library(BaseModel):
    """Library as seen by this core (existence checks only)"""
    id: str
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


class LibraryAssignment(BaseModel):
    """
    Edge between a librarian and a library.

    Rows outlive role changes: a former librarian keeps them, they are
    simply ignored by permission evaluation.
    """
    id: str
    user_id: str
    library_id: str
    assigned_at: datetime
    assigned_by: Optional[str] = None


class AuditEntry(BaseModel):
    """Immutable record of one role change"""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    action: Literal["role_change"] = "role_change"
    old_role: Role
    new_role: Role
    changed_by: str
    timestamp: datetime
    ip_address: Optional[str] = None


class RoleAssignmentResult(BaseModel):
    """
    Outcome of assign_role.

    Example (failure):
        {
            "success": False,
            "error": "Cannot demote the last administrator",
            "user_id": "u-2",
            "new_role": "USER",
            "previous_role": "ADMIN"
        }
    """
    success: bool
    error: Optional[str] = None
    user_id: str
    new_role: Optional[Role] = None
    previous_role: Optional[Role] = None
    audit_recorded: bool = False


class RoleSnapshot(BaseModel):
    """Role and library set captured once per session"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role
    library_ids: List[str] = Field(default_factory=list)
    captured_at: datetime = Field(default_factory=utc_now)
