"""
Immutable audit trail of role changes.

Logs:
  - Role changes (who changed whose role, from what, to what, when)

Features:
  - Append-only: entries are created, read and aged out, never updated
  - Per-user trail and cross-user recent view, newest first
  - Age-based retention sweep (default 30 days)

Classes:
  - AuditTrail: Main audit class
"""

import uuid
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from loguru import logger

from rbac.schemas import AuditEntry, Role, utc_now
from storage.interface import EntityStore, Kind, QueryFilter, QueryOrder

AUDIT_RETENTION_DAYS = 30


class AuditTrail:
    """Audit trail over the entity store"""

    def __init__(
        self,
        store: EntityStore,
        retention_days: int = AUDIT_RETENTION_DAYS,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.retention_days = retention_days
        self.clock = clock

    def log_role_change(
        self,
        user_id: str,
        old_role: Role,
        new_role: Role,
        changed_by: str,
        ip_address: str = None
    ) -> AuditEntry:
        """
        Record a role change.

        Args:
            user_id: User whose role changed
            old_role: Previous role
            new_role: New role
            changed_by: Admin who made the change
            ip_address: Optional address of the admin

        Returns:
            The created AuditEntry
        """
        entry = AuditEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            old_role=old_role,
            new_role=new_role,
            changed_by=changed_by,
            timestamp=self.clock(),
            ip_address=ip_address
        )
        self.store.save(Kind.AUDIT_ENTRY, entry.model_dump())

        logger.info(
            f"[AUDIT] role_change for user {user_id}: "
            f"{Role(old_role).value} -> {Role(new_role).value} by {changed_by}"
        )
        return entry

    def get_audit_trail(self, user_id: str, limit: int = 50) -> List[AuditEntry]:
        """Entries for one user, newest first"""
        records = self.store.query(
            Kind.AUDIT_ENTRY,
            filters=[QueryFilter("user_id", "=", user_id)],
            order_by=[QueryOrder("timestamp", "desc")],
            limit=limit
        )
        return [AuditEntry.model_validate(r) for r in records]

    def get_recent_audit_entries(self, limit: int = 100) -> List[AuditEntry]:
        """Entries across all users, newest first"""
        records = self.store.query(
            Kind.AUDIT_ENTRY,
            order_by=[QueryOrder("timestamp", "desc")],
            limit=limit
        )
        return [AuditEntry.model_validate(r) for r in records]

    def get_entry(self, entry_id: str) -> Optional[AuditEntry]:
        record = self.store.get(Kind.AUDIT_ENTRY, entry_id)
        return AuditEntry.model_validate(record) if record else None

    def cleanup_old_entries(self) -> int:
        """
        Delete entries older than the retention window.

        Should be called by a scheduled job (see RetentionScheduler or
        scripts/cleanup_audit.py), not from request handling. Only age is
        considered, so entries written while the sweep runs are never
        affected.

        Returns:
            Number of entries deleted
        """
        cutoff = self.clock() - timedelta(days=self.retention_days)
        old_entries = self.store.query(
            Kind.AUDIT_ENTRY,
            filters=[QueryFilter("timestamp", "<", cutoff)]
        )

        if not old_entries:
            logger.debug(f"[AUDIT] No entries older than {cutoff.isoformat()}")
            return 0

        ids_to_delete = [entry["id"] for entry in old_entries]
        self.store.batch_delete(Kind.AUDIT_ENTRY, ids_to_delete)

        logger.info(f"[AUDIT] Deleted {len(ids_to_delete)} entries older than {self.retention_days} days")
        return len(ids_to_delete)
