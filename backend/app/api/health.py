from fastapi import APIRouter
from sqlalchemy import text

from app.config import get_export_config
from app.db import engine

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except Exception:
        db_ok = False

    transport = get_export_config().transport
    return {
        "status": "ok" if db_ok and transport.is_configured else "degraded",
        "db": db_ok,
        "transport_backend": transport.backend,
        "transport_configured": transport.is_configured,
    }
