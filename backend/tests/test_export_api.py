from datetime import datetime

from fastapi.testclient import TestClient

from app.db import SessionLocal, init_db
from app.main import app
from app.models.order import ExportStatus, Order, OrderLine
from app.models.product import Product
from app.repositories.export_log_repo import ExportLogRepository

client = TestClient(app)


def setup_module(module):
    init_db()
    db = SessionLocal()
    try:
        db.add(Product(id=1, sku="API-1", name="Api Product"))
        db.add_all(
            [
                Order(id=1, status="pending", placed_at=datetime(2024, 1, 1, 9, 0)),
                Order(id=2, status="processing", export_status=ExportStatus.FAILED, export_batch="old"),
                Order(id=3, status="processing", export_status=ExportStatus.EXPORTED, export_batch="2024-01-02_160100"),
            ]
        )
        db.add(OrderLine(order_id=1, product_id=1, qty=2))
        db.commit()
    finally:
        db.close()


def test_status_change_flags_order_for_export():
    r = client.patch("/api/orders/1/status", json={"status": "processing"})
    assert r.status_code == 200
    body = r.json()
    assert body["flagged"] is True
    assert body["exportStatus"] == ExportStatus.PENDING

    # flagging happens once
    r = client.patch("/api/orders/1/status", json={"status": "processing"})
    assert r.json()["flagged"] is False


def test_status_change_validation():
    assert client.patch("/api/orders/1/status", json={"status": "shipped-to-moon"}).status_code == 400
    assert client.patch("/api/orders/999/status", json={"status": "processing"}).status_code == 404


def test_exported_order_not_reflagged():
    r = client.patch("/api/orders/3/status", json={"status": "processing"})
    assert r.status_code == 200
    assert r.json()["exportStatus"] == ExportStatus.EXPORTED
    assert r.json()["flagged"] is False


def test_pending_count():
    r = client.get("/api/admin/export/pending")
    assert r.status_code == 200
    assert r.json()["pending"] >= 1


def test_reset_failed_order():
    r = client.post("/api/admin/orders/2/reset-export")
    assert r.status_code == 200
    assert r.json() == {"orderId": 2, "exportStatus": ExportStatus.PENDING}

    # only failed orders can be reset
    assert client.post("/api/admin/orders/2/reset-export").status_code == 409
    assert client.post("/api/admin/orders/3/reset-export").status_code == 409
    assert client.post("/api/admin/orders/999/reset-export").status_code == 404


def test_batch_lookup():
    r = client.get("/api/admin/export/batches/2024-01-02_160100")
    assert r.status_code == 200
    assert r.json()["order_ids"] == [3]
    assert client.get("/api/admin/export/batches/nope").status_code == 404


def test_next_delivery_shape():
    r = client.get("/api/admin/export/next-delivery")
    assert r.status_code == 200
    body = r.json()
    assert body["packing_date"].startswith("Packing ")
    assert len(body["delivery_date"]) == 10


def test_export_log_paging():
    db = SessionLocal()
    try:
        repo = ExportLogRepository(db)
        repo.log("no_orders", "No pending orders found. Export skipped.")
        repo.log("failed", "Upload failed: boom", order_ids=[1], meta={"delivered": []})
    finally:
        db.close()

    r = client.get("/api/admin/export/log", params={"per_page": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] >= 2
    assert body["pages"] == body["total"]
    assert len(body["items"]) == 1

    r = client.get("/api/admin/export/log", params={"status": "failed"})
    assert all(item["status"] == "failed" for item in r.json()["items"])

    latest = client.get("/api/admin/export/log/latest")
    assert latest.status_code == 200
    assert latest.json()["status"] in ("failed", "success", "no_orders")


def test_test_connection_reports_missing_credentials():
    r = client.post("/api/admin/export/test-connection")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is False
    assert "not configured" in body["message"]
