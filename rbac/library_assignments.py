"""
Librarian <-> library assignments.

A librarian's library set is replaced wholesale on every assignment. Rows
are keyed per (user, library) and survive role changes; whether they still
grant anything is decided by the access policy, not here.
"""

import uuid
from datetime import datetime
from typing import Callable, List

from loguru import logger

from rbac.exceptions import (
    NotFoundError,
    ValidationError,
    INVALID_LIBRARIES_MESSAGE,
    LIBRARIANS_ONLY_MESSAGE,
    USER_NOT_FOUND_MESSAGE,
)
from rbac.schemas import LibraryAssignment, Role, User, utc_now
from storage.interface import EntityStore, Kind, QueryFilter, QueryOrder


class LibraryAssignmentManager:
    """Manages the library set of each librarian"""

    def __init__(self, store: EntityStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def _current_assignments(self, user_id: str) -> List[LibraryAssignment]:
        records = self.store.query(
            Kind.LIBRARY_ASSIGNMENT,
            filters=[QueryFilter("user_id", "=", user_id)],
            order_by=[QueryOrder("library_id", "asc")]
        )
        return [LibraryAssignment.model_validate(r) for r in records]

    def assign_libraries(self, user_id: str, library_ids: List[str], assigned_by: str = None) -> List[str]:
        """
        Replace the library set of a librarian.

        Args:
            user_id: Librarian user ID
            library_ids: Complete new set; an empty list revokes everything
            assigned_by: Admin making the change

        Returns:
            The stored library IDs (input order, duplicates removed)

        Raises:
            NotFoundError: user does not exist
            ValidationError: user is not a librarian, or unknown library IDs
        """
        record = self.store.get(Kind.USER, user_id)
        if not record:
            logger.warning(f"[LIBRARIES] User not found: {user_id}")
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)

        user = User.model_validate(record)
        if user.role != Role.LIBRARIAN:
            logger.warning(f"[LIBRARIES] {user_id} has role {user.role.value}, not LIBRARIAN")
            raise ValidationError(LIBRARIANS_ONLY_MESSAGE)

        requested = list(dict.fromkeys(library_ids))
        missing = [lib_id for lib_id in requested if self.store.get(Kind.LIBRARY, lib_id) is None]
        if missing:
            logger.warning(f"[LIBRARIES] Unknown libraries for {user_id}: {missing}")
            raise ValidationError(INVALID_LIBRARIES_MESSAGE.format(ids=", ".join(missing)))

        # Full replacement, no diffing against the previous set. New rows are
        # written before the old ones are removed.
        previous = self._current_assignments(user_id)

        now = self.clock()
        assignments = [
            LibraryAssignment(
                id=str(uuid.uuid4()),
                user_id=user_id,
                library_id=lib_id,
                assigned_at=now,
                assigned_by=assigned_by
            )
            for lib_id in requested
        ]
        if assignments:
            self.store.batch_save(Kind.LIBRARY_ASSIGNMENT, [a.model_dump() for a in assignments])
        if previous:
            self.store.batch_delete(Kind.LIBRARY_ASSIGNMENT, [a.id for a in previous])

        logger.info(
            f"[LIBRARIES] {user_id} now assigned {len(requested)} libraries "
            f"(was {len(previous)}) by {assigned_by}"
        )
        return requested

    def get_assigned_libraries(self, user_id: str) -> List[str]:
        """
        Library IDs stored for a user, regardless of the user's current role.
        Unknown users and users without rows get an empty list.
        """
        return [a.library_id for a in self._current_assignments(user_id)]
