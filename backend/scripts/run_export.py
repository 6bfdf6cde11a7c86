#!/usr/bin/env python3
"""
Run the daily fulfilment export once (crontab / manual entry point).

Exit code 0 on success, on "no orders" and when another run holds the
lock; 1 on failure.

Usage:
    python scripts/run_export.py
    python scripts/run_export.py --cleanup

Crontab example (16:01 UK time, one minute after the cut-off):
    CRON_TZ=Europe/London
    1 16 * * * cd /srv/export/backend && python scripts/run_export.py >> /var/log/export.log 2>&1
"""
import argparse
import os
import sys
from datetime import datetime

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.db import init_db
from app.services.batch_orchestrator import RunStatus
from app.services.export_runner import ExportAlreadyRunning, run_archive_cleanup, run_export

LABELS = {
    RunStatus.SUCCESS: "SUCCESS",
    RunStatus.NO_ORDERS: "OK",
    RunStatus.FAILED: "FAILED",
}


def _stamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Export pending orders to the fulfilment partner")
    parser.add_argument("--cleanup", action="store_true", help="only apply archive retention")
    args = parser.parse_args(argv)

    init_db(reset=False)

    if args.cleanup:
        deleted = run_archive_cleanup()
        print(f"[{_stamp()}] CLEANUP: removed {deleted} archive file(s)")
        return 0

    print(f"[{_stamp()}] Starting export...")
    try:
        outcome = run_export()
    except ExportAlreadyRunning as e:
        print(f"[{_stamp()}] SKIPPED: {e}")
        return 0
    except Exception as e:
        print(f"[{_stamp()}] FATAL: Uncaught exception: {e}")
        return 1

    print(f"[{_stamp()}] {LABELS.get(outcome.status, outcome.status.upper())}: {outcome.message}")
    return 0 if outcome.ok else 1


if __name__ == "__main__":
    sys.exit(main())
