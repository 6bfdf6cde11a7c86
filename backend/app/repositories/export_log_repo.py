import math
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.export_log import ExportLogEntry
from app.utils.log import get_logger
from app.utils.transactions import smart_transaction

log = get_logger("app.repositories.export_log", "EXPORT-LOG")


class ExportLogRepository:
    """Append-only access to the export audit table."""

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        status: str,
        message: str,
        order_ids: Sequence[int] = (),
        order_file: str = "",
        packing_file: str = "",
        meta: Optional[Dict] = None,
    ) -> ExportLogEntry:
        entry = ExportLogEntry(
            status=status,
            message=message,
            order_count=len(order_ids),
            order_ids=list(order_ids),
            order_file=order_file or "",
            packing_file=packing_file or "",
            meta=meta or {},
        )
        with smart_transaction(self.db):
            self.db.add(entry)
            self.db.flush()
        self.db.refresh(entry)
        log.info(f"#{entry.id} {status}: {message}")
        return entry

    def latest(self) -> Optional[ExportLogEntry]:
        return self.db.query(ExportLogEntry).order_by(ExportLogEntry.id.desc()).first()

    def page(self, page: int = 1, per_page: int = 20, status: str = None) -> Tuple[List[ExportLogEntry], int, int]:
        """Return (items newest first, total, pages)."""
        query = self.db.query(ExportLogEntry)
        if status:
            query = query.filter(ExportLogEntry.status == status)
        total = query.with_entities(func.count(ExportLogEntry.id)).scalar() or 0
        items = (
            query.order_by(ExportLogEntry.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return items, total, math.ceil(total / per_page) if per_page else 0
