"""
Runtime configuration for the access-control core.
Values come from the environment (and a local .env file); keyword
arguments override them.
"""

import os
import sys

import dotenv
from loguru import logger

dotenv.load_dotenv()


def _int_setting(value, env_name: str, default: int) -> int:
    if value is not None:
        return int(value)
    return int(os.getenv(env_name, str(default)))


class RbacConfig:
    """Configuration for stores, retention and session snapshots"""

    def __init__(
        self,
        database_url: str = None,
        audit_retention_days: int = None,
        audit_cleanup_interval_seconds: int = None,
        snapshot_secret: str = None,
        snapshot_ttl_seconds: int = None,
        log_level: str = None
    ):
        self.database_url = database_url or os.getenv("RBAC_DATABASE_URL", "sqlite:///:memory:")
        self.audit_retention_days = _int_setting(audit_retention_days, "AUDIT_RETENTION_DAYS", 30)
        self.audit_cleanup_interval_seconds = _int_setting(
            audit_cleanup_interval_seconds, "AUDIT_CLEANUP_INTERVAL_SECONDS", 24 * 3600
        )
        self.snapshot_secret = snapshot_secret or os.getenv("SNAPSHOT_SECRET")
        self.snapshot_ttl_seconds = _int_setting(snapshot_ttl_seconds, "SNAPSHOT_TTL_SECONDS", 3600)
        self.log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

        if self.audit_retention_days <= 0:
            raise ValueError("AUDIT_RETENTION_DAYS must be positive")
        if self.audit_cleanup_interval_seconds <= 0:
            raise ValueError("AUDIT_CLEANUP_INTERVAL_SECONDS must be positive")


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a single stderr sink at `level`"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{function} - {message}"
    )
