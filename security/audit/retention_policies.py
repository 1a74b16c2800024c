"""
Data retention for the audit trail.

Features:
  - Periodic retention sweep on a background thread
  - Independent of request handling: a failed sweep is logged and the
    schedule keeps running

Classes:
  - RetentionScheduler: runs AuditTrail.cleanup_old_entries every interval
"""

import threading
from typing import Optional

from loguru import logger

from security.audit.audit_trail import AuditTrail

DAILY = 24 * 3600


class RetentionScheduler:
    """Daemon thread that sweeps old audit entries"""

    def __init__(self, audit_trail: AuditTrail, interval_seconds: float = DAILY):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.audit_trail = audit_trail
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_deleted: Optional[int] = None

    def run_once(self) -> int:
        """Run one sweep. Errors are logged and reported as 0 deletions."""
        try:
            deleted = self.audit_trail.cleanup_old_entries()
            self.last_deleted = deleted
            logger.info(f"[RETENTION] Sweep finished, {deleted} entries deleted")
            return deleted
        except Exception as e:
            logger.error(f"[RETENTION] Sweep failed: {type(e).__name__}: {e}")
            return 0

    def _run(self):
        # Sweep immediately, then once per interval until stopped
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self.interval_seconds)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            logger.warning("[RETENTION] Scheduler already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="audit-retention",
            daemon=True
        )
        self._thread.start()
        logger.info(f"[RETENTION] Scheduler started (every {self.interval_seconds}s)")

    def stop(self, timeout: float = 5.0):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("[RETENTION] Scheduler stopped")
