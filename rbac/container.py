"""
Wiring for the access-control core.

Components are constructed once by build_services and shared by reference
with every caller (routes, guards, jobs). They hold no per-request state and
are never reset; tests build a fresh set instead.
"""

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from rbac.config import RbacConfig
from rbac.library_assignments import LibraryAssignmentManager
from rbac.role_manager import RoleAssignmentEngine
from rbac.snapshots import SnapshotIssuer
from security.audit.audit_trail import AuditTrail
from security.audit.retention_policies import RetentionScheduler
from security.policy.rbac import AccessPolicyEvaluator
from storage.interface import EntityStore
from storage.relational.database import DatabaseConfig, DatabaseManager
from storage.relational.sql_store import SqlAlchemyEntityStore


@dataclass
class RbacServices:
    """Shared component instances"""
    store: EntityStore
    audit_trail: AuditTrail
    roles: RoleAssignmentEngine
    libraries: LibraryAssignmentManager
    policy: AccessPolicyEvaluator
    retention: RetentionScheduler
    snapshots: Optional[SnapshotIssuer] = None
    database: Optional[DatabaseManager] = field(default=None, repr=False)


def build_store(config: RbacConfig) -> DatabaseManager:
    """Initialize the relational database named by the config"""
    db_manager = DatabaseManager(DatabaseConfig(url=config.database_url))
    db_manager.initialize()
    return db_manager


def build_services(config: RbacConfig = None, store: EntityStore = None) -> RbacServices:
    """
    Build every component once.

    Args:
        config: Runtime configuration (environment if omitted)
        store: Entity store to use; a SQLAlchemy store on config.database_url otherwise

    Returns:
        RbacServices. snapshots is None when no SNAPSHOT_SECRET is configured.
    """
    config = config or RbacConfig()

    database = None
    if store is None:
        database = build_store(config)
        store = SqlAlchemyEntityStore(database.session_factory)

    audit_trail = AuditTrail(store, retention_days=config.audit_retention_days)
    roles = RoleAssignmentEngine(store, audit_trail)
    libraries = LibraryAssignmentManager(store)

    snapshots = None
    if config.snapshot_secret:
        snapshots = SnapshotIssuer(
            roles,
            libraries,
            secret=config.snapshot_secret,
            ttl_seconds=config.snapshot_ttl_seconds
        )
    else:
        logger.warning("SNAPSHOT_SECRET not set - session snapshots disabled")

    return RbacServices(
        store=store,
        audit_trail=audit_trail,
        roles=roles,
        libraries=libraries,
        policy=AccessPolicyEvaluator(),
        retention=RetentionScheduler(audit_trail, interval_seconds=config.audit_cleanup_interval_seconds),
        snapshots=snapshots,
        database=database
    )
