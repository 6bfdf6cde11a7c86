"""
Entry points used by the scheduler, the CLI and the admin API.

Overlapping exports are prevented here with an advisory file lock; the
orchestrator itself assumes it is the only run in progress.
"""
import os
import tempfile
from typing import Optional

from filelock import FileLock, Timeout

from app.adapters.notifier import build_notifier
from app.config import Settings, get_export_config, settings as default_settings
from app.db import SessionLocal
from app.repositories.export_log_repo import ExportLogRepository
from app.services.archive_service import ArchiveStore
from app.services.batch_orchestrator import BatchOrchestrator, ExportOutcome
from app.utils.log import get_logger

log = get_logger("app.services.export_runner", "EXPORT")


class ExportAlreadyRunning(Exception):
    pass


def lock_path(source: Settings = None) -> str:
    source = source or default_settings
    return source.get("EXPORT_LOCK_FILE") or os.path.join(
        tempfile.gettempdir(), "fulfilment-export.lock"
    )


def run_export(source: Settings = None, transporter=None, notifier=None) -> ExportOutcome:
    """
    Run one export under the advisory lock.
    Raises ExportAlreadyRunning if another run holds it.
    """
    source = source or default_settings
    config = get_export_config(source)
    lock = FileLock(lock_path(source))
    try:
        with lock.acquire(timeout=0):
            db = SessionLocal()
            try:
                orchestrator = BatchOrchestrator(
                    db,
                    config,
                    transporter=transporter,
                    notifier=notifier or build_notifier(config.alert_recipients, source),
                )
                return orchestrator.run()
            finally:
                db.close()
    except Timeout:
        raise ExportAlreadyRunning("Another export is already running.")


def scheduled_export() -> Optional[ExportOutcome]:
    """APScheduler job body: never raises, a skipped run is logged."""
    try:
        outcome = run_export()
    except ExportAlreadyRunning as e:
        log.warning(f"SKIPPED: {e}")
        return None
    except Exception:
        log.exception("scheduled export crashed")
        return None
    log.info(f"{outcome.status}: {outcome.message}")
    return outcome


def run_archive_cleanup(source: Settings = None) -> int:
    """Apply archive retention and record the cleanup in the export log."""
    config = get_export_config(source or default_settings)
    deleted = ArchiveStore(config.archive_dir).cleanup(config.retention_days)
    if deleted:
        db = SessionLocal()
        try:
            ExportLogRepository(db).log(
                "cleanup",
                f"Cleaned up {len(deleted)} archive files older than {config.retention_days} days.",
                meta={"deleted": deleted},
            )
        finally:
            db.close()
    return len(deleted)
