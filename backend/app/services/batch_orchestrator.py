from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.adapters.notifier import LogNotifier, Notifier
from app.adapters.transport import Transporter, build_transporter
from app.config import ExportConfig
from app.repositories.export_log_repo import ExportLogRepository
from app.repositories.order_repo import OrderRepository
from app.services.archive_service import ArchiveStore, safe_filename
from app.services.csv_serializer import RecordSerializer
from app.services.delivery_dates import DateWindowCalculator
from app.services.line_items import total_pieces
from app.services.order_file import OrderLineRenderer
from app.services.packaging import PackagingAllocator
from app.services.packing_file import BatchAggregator
from app.utils.log import get_logger

log = get_logger("app.services.batch_orchestrator", "EXPORT")


class RunState:
    COLLECTING = "collecting"
    COMPUTING = "computing"
    RENDERING = "rendering"
    TRANSFERRING = "transferring"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class RunStatus:
    SUCCESS = "success"
    FAILED = "failed"
    NO_ORDERS = "no_orders"


@dataclass
class ExportOutcome:
    status: str
    message: str
    state: str
    batch_id: Optional[str] = None
    order_ids: List[int] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    delivered: List[str] = field(default_factory=list)
    log_entry_id: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status in (RunStatus.SUCCESS, RunStatus.NO_ORDERS)

    def as_dict(self) -> Dict:
        return {
            "status": self.status,
            "message": self.message,
            "state": self.state,
            "batch_id": self.batch_id,
            "order_ids": self.order_ids,
            "files": self.files,
            "delivered": self.delivered,
            "log_entry_id": self.log_entry_id,
        }


class BatchOrchestrator:
    """
    One export run: collect pending orders, build both files, archive and
    deliver them, then mark the whole batch exported.

    Order state changes only after the transporter confirms every file;
    any failure leaves the batch pending for the next run. Each run writes
    exactly one audit entry. Callers must not run two exports at once.
    """

    def __init__(
        self,
        db: Session,
        config: ExportConfig,
        transporter: Optional[Transporter] = None,
        notifier: Optional[Notifier] = None,
        archive: Optional[ArchiveStore] = None,
    ):
        self.db = db
        self.config = config
        self.orders = OrderRepository(db)
        self.audit = ExportLogRepository(db)
        self.transporter = transporter or build_transporter(config.transport)
        self.notifier = notifier or LogNotifier()
        self.archive = archive or ArchiveStore(config.archive_dir)
        self.dates = DateWindowCalculator.from_config(config)
        self.packaging = PackagingAllocator()
        self.serializer = RecordSerializer()
        self.state = None

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _enter(self, state: str) -> None:
        self.state = state
        log.debug(f"state -> {state}")

    def batch_token(self, now: datetime) -> str:
        return now.astimezone(ZoneInfo(self.config.timezone)).strftime("%Y-%m-%d_%H%M%S")

    def filenames(self, batch_id: str):
        ref = self.config.account_ref
        return (
            safe_filename(f"{ref}_ORDERS_{batch_id}.csv"),
            safe_filename(f"{ref}_PACKING_{batch_id}.csv"),
        )

    def _notify(self, subject: str, body: str) -> None:
        try:
            self.notifier.send(subject, body)
        except Exception:
            log.exception(f"notification '{subject}' could not be sent")

    def _fail(self, message: str, orders, meta: Dict, batch_id=None, files=(), delivered=()) -> ExportOutcome:
        self.db.rollback()
        order_ids = [o.id for o in orders]
        entry = self.audit.log(
            "failed",
            message,
            order_ids=order_ids,
            order_file=files[0] if files else "",
            packing_file=files[1] if len(files) > 1 else "",
            meta=dict(meta, batch_id=batch_id, delivered=list(delivered)),
        )
        self._enter(RunState.FAILED)
        self._notify(
            "[Fulfilment Export] FAILED - " + message.split(":")[0],
            f"The export failed at {self._now().isoformat(timespec='seconds')}.\n\n"
            f"Error: {message}\n\n"
            f"{len(order_ids)} orders are still pending and will be retried on the next run.",
        )
        return ExportOutcome(
            status=RunStatus.FAILED,
            message=message,
            state=self.state,
            batch_id=batch_id,
            order_ids=order_ids,
            files=list(files),
            delivered=list(delivered),
            log_entry_id=entry.id,
        )

    def run(self) -> ExportOutcome:
        now = self._now()

        # 1. collect
        self._enter(RunState.COLLECTING)
        candidates = self.orders.list_pending(self.config.ready_status)
        orders = [o for o in candidates if total_pieces(o) > 0]
        empty = [o for o in candidates if total_pieces(o) == 0]
        if empty:
            log.warning(f"excluding orders with no exportable items: {[o.id for o in empty]}")
            self.orders.mark_failed(empty)
        skipped = [o.id for o in empty]

        if not orders:
            entry = self.audit.log(
                RunStatus.NO_ORDERS,
                "No pending orders found. Export skipped.",
                meta={"skipped_order_ids": skipped},
            )
            self._enter(RunState.DONE)
            return ExportOutcome(
                status=RunStatus.NO_ORDERS,
                message=entry.message,
                state=self.state,
                log_entry_id=entry.id,
            )

        batch_id = self.batch_token(now)
        meta = {"skipped_order_ids": skipped}
        files = ()
        try:
            # 2. compute
            self._enter(RunState.COMPUTING)
            windows = {o.id: self.dates.compute(o.placed_at) for o in orders}
            plans = {o.id: self.packaging.allocate(total_pieces(o)) for o in orders}

            # 3. render + archive
            self._enter(RunState.RENDERING)
            renderer = OrderLineRenderer(self.config)
            order_rows = renderer.render(orders, windows, plans)
            packing_rows = BatchAggregator(self.config).aggregate(orders, windows, plans)
            meta["warnings"] = renderer.warnings
            files = self.filenames(batch_id)
            paths = [
                self.archive.write(files[0], self.serializer.serialize(order_rows)),
                self.archive.write(files[1], self.serializer.serialize(packing_rows)),
            ]

            # 4. transfer
            self._enter(RunState.TRANSFERRING)
            result = self.transporter.deliver({name: str(p) for name, p in zip(files, paths)})
        except Exception as e:
            log.exception(f"export aborted in state {self.state}")
            return self._fail(f"Export error during {self.state}: {e}", orders, meta, batch_id, files)

        if not result.success:
            meta["error"] = result.error
            return self._fail(
                f"Upload failed: {result.error}", orders, meta, batch_id, files, result.delivered
            )

        # 5. finalize
        self._enter(RunState.FINALIZING)
        try:
            self.orders.mark_exported(orders, batch_id, now)
        except Exception as e:
            log.exception("files delivered but order state could not be updated")
            meta["error"] = str(e)
            return self._fail(
                f"Order update failed after upload: {e}", orders, meta, batch_id, files, result.delivered
            )

        order_ids = [o.id for o in orders]
        message = f"Exported {len(orders)} orders. Files: {files[0]}, {files[1]}"
        entry = self.audit.log(
            RunStatus.SUCCESS,
            message,
            order_ids=order_ids,
            order_file=files[0],
            packing_file=files[1],
            meta=dict(meta, batch_id=batch_id, delivered=result.delivered),
        )
        self._enter(RunState.DONE)
        self._notify(
            f"[Fulfilment Export] Success - {len(orders)} orders exported",
            f"The export completed successfully at {now.isoformat(timespec='seconds')}.\n\n"
            f"Orders exported: {len(orders)}\n"
            f"Order IDs: {', '.join('#' + str(i) for i in order_ids)}\n\n"
            f"Files uploaded:\n- {files[0]}\n- {files[1]}",
        )
        return ExportOutcome(
            status=RunStatus.SUCCESS,
            message=message,
            state=self.state,
            batch_id=batch_id,
            order_ids=order_ids,
            files=list(files),
            delivered=list(result.delivered),
            log_entry_id=entry.id,
        )
