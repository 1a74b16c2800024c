"""
Role-Based Access Control (RBAC) policy evaluation.

Roles:
  - USER: basic borrowing and browsing
  - LIBRARIAN: USER features plus returns, library management, inventory and
    borrowing records, the last three limited to the snapshot's libraries
  - ADMIN: every feature; assigns roles to everyone except themselves

Decisions are pure functions of a RoleSnapshot captured at login. Nothing
here reads the entity store, so a role change only affects a user's
session after the next snapshot is captured.

Classes:
  - AccessPolicyEvaluator: feature checks against a snapshot
"""

from typing import List, Optional, Union

from loguru import logger

from rbac.role_config import Feature, get_library_scoped_features, get_role_features, role_has_feature
from rbac.schemas import Role, RoleSnapshot


class AccessPolicyEvaluator:
    """Feature-level authorization for role snapshots"""

    @staticmethod
    def _as_feature(feature: Union[Feature, str]) -> Optional[Feature]:
        try:
            return Feature(feature)
        except ValueError:
            return None

    def can_access_feature(
        self,
        snapshot: RoleSnapshot,
        feature: Union[Feature, str],
        library_id: str = None
    ) -> bool:
        """
        Check whether a snapshot grants a feature.

        Library-scoped features need the library in the snapshot's set; when
        no library_id is given they are granted if the set is non-empty.
        Unknown roles and features are denied.
        """
        requested = self._as_feature(feature)
        if requested is None:
            logger.debug(f"Unknown feature requested: {feature}")
            return False

        features = get_role_features(snapshot.role)
        if "*" in features:
            return True
        if requested not in features:
            return False

        if requested in get_library_scoped_features(snapshot.role):
            # Stale assignment rows of a non-librarian never reach here:
            # only the LIBRARIAN role has library-scoped features
            if snapshot.role != Role.LIBRARIAN:
                return False
            if library_id is None:
                return len(snapshot.library_ids) > 0
            return library_id in snapshot.library_ids

        return True

    def can_assign_role(self, snapshot: RoleSnapshot, target_user_id: str) -> bool:
        """Admins may change anyone's role but their own"""
        return snapshot.role == Role.ADMIN and target_user_id != snapshot.user_id

    def can_manage_users(self, role: Role) -> bool:
        return role_has_feature(role, Feature.USER_MANAGEMENT)

    def can_manage_libraries(self, role: Role) -> bool:
        """Role-level check; librarians are further limited to their assigned libraries"""
        return role_has_feature(role, Feature.LIBRARY_MANAGEMENT)

    def can_borrow_books(self, role: Role) -> bool:
        return role_has_feature(role, Feature.BORROW_BOOKS)

    def get_accessible_features(self, snapshot: RoleSnapshot) -> List[Feature]:
        """All features the snapshot can use in at least one library"""
        return [f for f in Feature if self.can_access_feature(snapshot, f)]
