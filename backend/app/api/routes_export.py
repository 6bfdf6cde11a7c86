from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.adapters.transport import TransportConfigError, build_transporter
from app.config import get_export_config
from app.db import get_db
from app.repositories.export_log_repo import ExportLogRepository
from app.repositories.order_repo import OrderRepository, OrderRepositoryException
from app.schemas.export_schema import DeliveryWindowOut, ExportLogOut, ExportLogPage
from app.services.delivery_dates import DateWindowCalculator
from app.services.export_runner import ExportAlreadyRunning, run_export

router = APIRouter(prefix="/api/admin", tags=["export"])


@router.post("/export/run", summary="Run the export now (manual backup for the daily job)")
def manual_export():
    try:
        outcome = run_export()
    except ExportAlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))
    return outcome.as_dict()


@router.get("/export/log", response_model=ExportLogPage, summary="Export history")
def export_log(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=200),
    status: Optional[str] = Query(None, description="success, failed, no_orders, cleanup"),
    db: Session = Depends(get_db),
):
    items, total, pages = ExportLogRepository(db).page(page=page, per_page=per_page, status=status)
    return {
        "items": [ExportLogOut.model_validate(e) for e in items],
        "total": total,
        "pages": pages,
        "page": page,
    }


@router.get("/export/log/latest", response_model=ExportLogOut, summary="Most recent export")
def latest_export(db: Session = Depends(get_db)):
    entry = ExportLogRepository(db).latest()
    if not entry:
        raise HTTPException(status_code=404, detail="No exports logged yet")
    return ExportLogOut.model_validate(entry)


@router.get("/export/pending", summary="Orders waiting for the next export")
def pending_orders(db: Session = Depends(get_db)):
    config = get_export_config()
    return {"pending": OrderRepository(db).pending_count(config.ready_status)}


@router.get("/export/next-delivery", response_model=DeliveryWindowOut, summary="Delivery window for an order placed now")
def next_delivery():
    window = DateWindowCalculator.from_config(get_export_config()).next_from_now()
    return window.as_dict()


@router.get("/export/batches/{batch_id}", summary="Orders included in a batch")
def batch_orders(batch_id: str, db: Session = Depends(get_db)):
    orders = OrderRepository(db).list_by_batch(batch_id)
    if not orders:
        raise HTTPException(status_code=404, detail="Batch not found")
    return {"batch_id": batch_id, "order_ids": [o.id for o in orders]}


@router.post("/export/test-connection", summary="Check transport credentials and remote directory")
def test_connection():
    try:
        transporter = build_transporter(get_export_config().transport)
    except TransportConfigError as e:
        return {"success": False, "message": str(e)}
    ok, message = transporter.test_connection()
    return {"success": ok, "message": message}


@router.post("/orders/{order_id}/reset-export", summary="Re-queue a failed order for export")
def reset_export(order_id: int, db: Session = Depends(get_db)):
    repo = OrderRepository(db)
    try:
        order = repo.reset_order(order_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderRepositoryException as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"orderId": order.id, "exportStatus": order.export_status}
