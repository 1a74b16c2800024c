"""
Session role snapshots.

At login the user's role and library set are read once and signed into a
JWT. Guards decode the token and never go back to the store, so an admin's
change reaches an active session only when the user logs in again.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from loguru import logger

from rbac.exceptions import NotFoundError, USER_NOT_FOUND_MESSAGE
from rbac.library_assignments import LibraryAssignmentManager
from rbac.role_manager import RoleAssignmentEngine
from rbac.schemas import RoleSnapshot, utc_now

ALGORITHM = "HS256"


class SnapshotIssuer:
    """Captures role snapshots and carries them in signed tokens"""

    def __init__(
        self,
        roles: RoleAssignmentEngine,
        libraries: LibraryAssignmentManager,
        secret: str,
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utc_now
    ):
        if not secret:
            raise ValueError("SNAPSHOT_SECRET not set. Cannot issue session snapshots.")
        if len(secret) < 32:
            logger.warning("SNAPSHOT_SECRET is less than 32 bytes - use a stronger secret!")
        self.roles = roles
        self.libraries = libraries
        self.secret = secret
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def capture(self, user_id: str) -> RoleSnapshot:
        """Read the user's current role and library set"""
        user = self.roles.get_user(user_id)
        if user is None:
            logger.warning(f"[SNAPSHOT] User not found: {user_id}")
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)

        snapshot = RoleSnapshot(
            user_id=user.id,
            role=user.role,
            library_ids=self.libraries.get_assigned_libraries(user_id),
            captured_at=self.clock()
        )
        logger.debug(
            f"[SNAPSHOT] Captured {snapshot.role.value} with {len(snapshot.library_ids)} libraries for {user_id}"
        )
        return snapshot

    def issue_token(self, snapshot: RoleSnapshot) -> str:
        return jwt.encode(
            {
                "sub": snapshot.user_id,
                "role": snapshot.role.value,
                "library_ids": list(snapshot.library_ids),
                "captured_at": snapshot.captured_at.isoformat(),
                "exp": datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)
            },
            self.secret,
            algorithm=ALGORITHM
        )

    def login(self, user_id: str) -> str:
        """Capture a snapshot for an already-authenticated user and sign it"""
        token = self.issue_token(self.capture(user_id))
        logger.info(f"[SNAPSHOT] Session snapshot issued for {user_id}")
        return token

    def verify_token(self, token: str) -> Optional[RoleSnapshot]:
        """Decode a snapshot token, None if expired or invalid"""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
            return RoleSnapshot(
                user_id=payload["sub"],
                role=payload["role"],
                library_ids=payload.get("library_ids", []),
                captured_at=payload["captured_at"]
            )
        except jwt.ExpiredSignatureError:
            logger.warning("[SNAPSHOT] Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"[SNAPSHOT] Invalid token: {e}")
            return None
        except (KeyError, ValueError) as e:
            logger.warning(f"[SNAPSHOT] Malformed snapshot claims: {e}")
            return None
