from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.export_schema import OrderStatusIn
from app.services.order_service import OrderService, OrderServiceException

router = APIRouter(tags=["orders"])


@router.patch("/{order_id}/status", summary="Change order status (flags ready orders for export)")
def update_order_status(order_id: int, payload: OrderStatusIn, db: Session = Depends(get_db)):
    svc = OrderService(db)
    try:
        return svc.update_status(order_id, payload.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderServiceException as e:
        raise HTTPException(status_code=400, detail=str(e))
