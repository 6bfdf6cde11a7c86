from typing import Dict

from sqlalchemy.orm import Session

from app.config import settings
from app.models.order import ExportStatus
from app.repositories.order_repo import OrderRepository
from app.utils.log import get_logger
from app.utils.transactions import smart_transaction

log = get_logger("app.services.order_service", "ORDERS")

ORDER_STATUSES = ("pending", "processing", "on-hold", "completed", "cancelled", "refunded")


class OrderServiceException(Exception):
    pass


class OrderService:
    def __init__(self, db: Session, ready_status: str = None):
        self.db = db
        self.repo = OrderRepository(db)
        self.ready_status = ready_status or settings.READY_ORDER_STATUS

    def update_status(self, order_id: int, new_status: str) -> Dict:
        """
        Change an order's status. Moving into the ready status flags the
        order for the next export unless it has already been picked up.
        """
        if new_status not in ORDER_STATUSES:
            raise OrderServiceException(f"Unknown order status: {new_status}")
        order = self.repo.get(order_id)
        if not order:
            raise LookupError(f"Order #{order_id} not found")

        old_status = order.status
        with smart_transaction(self.db):
            order.status = new_status
            self.db.flush()

        flagged = False
        if new_status == self.ready_status and order.export_status != ExportStatus.EXPORTED:
            flagged = self.repo.flag_pending(order)
            if flagged:
                log.info(f"order #{order.id} flagged for export ({old_status} -> {new_status})")

        return {
            "orderId": order.id,
            "status": order.status,
            "exportStatus": order.export_status,
            "flagged": flagged,
        }
