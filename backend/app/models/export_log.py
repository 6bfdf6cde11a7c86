from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from app.db import Base


class ExportLogEntry(Base):
    """
    Append-only audit record, one per export run.

    Holds order ids and filenames only; the archived CSVs carry the
    personal data and are subject to retention cleanup.
    """

    __tablename__ = "export_log"
    id = Column(Integer, primary_key=True, autoincrement=True)
    export_date = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, index=True)  # success, failed, no_orders, cleanup
    message = Column(Text, nullable=True)
    order_count = Column(Integer, nullable=False, default=0)
    order_ids = Column(JSON, nullable=True)
    order_file = Column(String(255), nullable=False, default="")
    packing_file = Column(String(255), nullable=False, default="")
    meta = Column(JSON, nullable=True)
