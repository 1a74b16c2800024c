"""
Role assignment engine.

Validates and applies role changes, then records them in the audit trail.
Concurrency policy is last-write-wins: nothing here locks, and the
admin-count check and the save are separate store calls.
"""

from datetime import datetime
from typing import Callable, List, Optional, Union

from loguru import logger

from rbac.exceptions import (
    AuthorizationError,
    InvariantViolationError,
    NotFoundError,
    RbacError,
    SelfModificationError,
    ValidationError,
    INVALID_ROLE_MESSAGE,
    LAST_ADMIN_MESSAGE,
    ONLY_ADMINS_MESSAGE,
    SELF_MODIFICATION_MESSAGE,
    USER_NOT_FOUND_MESSAGE,
)
from rbac.schemas import Role, RoleAssignmentResult, User, utc_now
from security.audit.audit_trail import AuditTrail
from storage.interface import EntityStore, Kind, QueryFilter, QueryOrder


class RoleAssignmentEngine:
    """Role management over the entity store"""

    def __init__(
        self,
        store: EntityStore,
        audit_trail: AuditTrail,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.audit_trail = audit_trail
        self.clock = clock
        logger.info("RoleAssignmentEngine initialized")

    # ==================== READS ====================

    def get_user(self, user_id: str) -> Optional[User]:
        record = self.store.get(Kind.USER, user_id)
        return User.model_validate(record) if record else None

    def is_admin(self, user_id: str) -> bool:
        user = self.get_user(user_id)
        return user is not None and user.role == Role.ADMIN

    def count_admins(self) -> int:
        """Number of persisted users with role ADMIN"""
        admins = self.store.query(
            Kind.USER,
            filters=[QueryFilter("role", "=", Role.ADMIN.value)]
        )
        return len(admins)

    def get_users_except(self, exclude_user_id: str) -> List[User]:
        """All users but one (the admin looking at the management view)"""
        records = self.store.query(
            Kind.USER,
            filters=[QueryFilter("id", "!=", exclude_user_id)],
            order_by=[QueryOrder("email", "asc")]
        )
        return [User.model_validate(r) for r in records]

    # ==================== ROLE ASSIGNMENT ====================

    @staticmethod
    def _known_role(value: Union[Role, str]) -> Optional[Role]:
        try:
            return Role(value)
        except ValueError:
            return None

    def assign_role(
        self,
        actor_id: str,
        target_id: str,
        new_role: Union[Role, str],
        ip_address: str = None
    ) -> RoleAssignmentResult:
        """
        Assign a role to a user.

        Checks, in order, stopping at the first failure:
          1. actor exists and is ADMIN
          2. actor is not the target
          3. target exists
          4. new_role is a known role
          5. demoting an ADMIN leaves at least one other ADMIN

        Nothing is written when a check fails. After the user is saved the
        change is logged to the audit trail; an audit failure does not undo
        the role change (the result reports audit_recorded=False).

        Returns:
            RoleAssignmentResult, never raises
        """
        previous_role = None
        requested_role = self._known_role(new_role)

        try:
            logger.info(f"[ROLE] {actor_id} requests role {new_role} for {target_id}")

            actor = self.get_user(actor_id)
            if actor is None or actor.role != Role.ADMIN:
                raise AuthorizationError(ONLY_ADMINS_MESSAGE)

            if target_id == actor_id:
                raise SelfModificationError(SELF_MODIFICATION_MESSAGE)

            target = self.get_user(target_id)
            if target is None:
                raise NotFoundError(USER_NOT_FOUND_MESSAGE)
            previous_role = target.role

            if requested_role is None:
                raise ValidationError(INVALID_ROLE_MESSAGE.format(role=new_role))

            if previous_role == Role.ADMIN and requested_role != Role.ADMIN:
                if self.count_admins() <= 1:
                    raise InvariantViolationError(LAST_ADMIN_MESSAGE)

            updated = target.model_copy(update={
                "role": requested_role,
                "updated_at": self.clock(),
                "updated_by": actor_id,
            })
            self.store.save(Kind.USER, updated.model_dump())

        except RbacError as e:
            logger.warning(f"[ROLE] Rejected role change for {target_id}: {e.message}")
            return RoleAssignmentResult(
                success=False,
                error=e.message,
                user_id=target_id,
                new_role=requested_role,
                previous_role=previous_role
            )
        except Exception as e:
            logger.error(f"[ROLE] Error assigning role: {type(e).__name__}: {e}")
            return RoleAssignmentResult(
                success=False,
                error=str(e),
                user_id=target_id,
                new_role=requested_role,
                previous_role=previous_role
            )

        audit_recorded = self._record_change(target_id, previous_role, requested_role, actor_id, ip_address)

        logger.info(
            f"[ROLE] {target_id}: {previous_role.value} -> {requested_role.value} (by {actor_id})"
        )
        return RoleAssignmentResult(
            success=True,
            user_id=target_id,
            new_role=requested_role,
            previous_role=previous_role,
            audit_recorded=audit_recorded
        )

    def _record_change(
        self,
        target_id: str,
        previous_role: Role,
        new_role: Role,
        actor_id: str,
        ip_address: Optional[str]
    ) -> bool:
        """Write the audit entry. The role change is already committed."""
        try:
            self.audit_trail.log_role_change(target_id, previous_role, new_role, actor_id, ip_address)
            return True
        except Exception as e:
            logger.error(
                f"[ROLE] Role change for {target_id} committed but audit write failed: "
                f"{type(e).__name__}: {e}"
            )
            return False
