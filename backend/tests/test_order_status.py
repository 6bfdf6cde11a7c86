import pytest

from app.db import SessionLocal, init_db
from app.models.order import ExportStatus, Order
from app.repositories.order_repo import OrderRepository, OrderRepositoryException
from app.services.order_service import OrderService


def setup_module(module):
    init_db()
    db = SessionLocal()
    try:
        db.add_all([Order(id=1, status="pending"), Order(id=2, status="pending"), Order(id=3, status="pending")])
        db.commit()
    finally:
        db.close()


def test_custom_ready_status():
    db = SessionLocal()
    try:
        svc = OrderService(db, ready_status="completed")
        assert svc.update_status(1, "processing")["flagged"] is False
        result = svc.update_status(1, "completed")
        assert result["flagged"] is True
        assert result["exportStatus"] == ExportStatus.PENDING
    finally:
        db.close()


def test_mark_exported_is_all_or_nothing():
    db = SessionLocal()
    try:
        repo = OrderRepository(db)
        a, b = repo.get(2), repo.get(3)
        a.export_status = ExportStatus.PENDING
        b.export_status = ExportStatus.EXPORTED
        db.commit()

        with pytest.raises(OrderRepositoryException):
            repo.mark_exported([a, b], "batch-x")

        db.expire_all()
        assert repo.get(2).export_status == ExportStatus.PENDING
        assert repo.get(2).export_batch is None
    finally:
        db.close()


def test_mark_failed_only_touches_pending():
    db = SessionLocal()
    try:
        repo = OrderRepository(db)
        repo.mark_failed([repo.get(2), repo.get(3)])
        db.expire_all()
        assert repo.get(2).export_status == ExportStatus.FAILED
        assert repo.get(3).export_status == ExportStatus.EXPORTED
    finally:
        db.close()
