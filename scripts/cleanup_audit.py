# scripts/cleanup_audit.py
"""
One-shot audit retention sweep, meant for a daily cron entry:

    0 3 * * * python -m scripts.cleanup_audit --database-url postgresql://...
"""

import argparse
import sys

from loguru import logger

from rbac.config import RbacConfig, configure_logging
from rbac.container import build_services


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete audit entries past the retention window")
    parser.add_argument("--database-url", default=None, help="Overrides RBAC_DATABASE_URL")
    parser.add_argument("--retention-days", type=int, default=None, help="Overrides AUDIT_RETENTION_DAYS")
    args = parser.parse_args(argv)

    config = RbacConfig(database_url=args.database_url, audit_retention_days=args.retention_days)
    configure_logging(config.log_level)

    services = build_services(config)
    try:
        deleted = services.audit_trail.cleanup_old_entries()
    except Exception as e:
        logger.error(f"[RETENTION] Cleanup failed: {type(e).__name__}: {e}")
        return 1
    finally:
        if services.database is not None:
            services.database.dispose()

    print(f"Deleted {deleted} audit entries older than {config.audit_retention_days} days")
    return 0


if __name__ == "__main__":
    sys.exit(main())
