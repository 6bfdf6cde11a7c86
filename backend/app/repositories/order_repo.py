from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models.order import ExportStatus, Order, OrderLine
from app.models.product import BundleComponent, Product
from app.utils.transactions import smart_transaction


class OrderRepositoryException(Exception):
    pass


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def _with_lines(self, query):
        return query.options(
            selectinload(Order.lines)
            .selectinload(OrderLine.product)
            .selectinload(Product.components)
            .selectinload(BundleComponent.component)
        )

    def get(self, order_id: int) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def list_pending(self, ready_status: str) -> List[Order]:
        """Orders flagged for export whose order status is `ready_status`, oldest first."""
        return (
            self._with_lines(self.db.query(Order))
            .filter(
                Order.export_status == ExportStatus.PENDING,
                Order.status == ready_status,
            )
            .order_by(Order.id)
            .all()
        )

    def pending_count(self, ready_status: str) -> int:
        return (
            self.db.query(func.count(Order.id))
            .filter(
                Order.export_status == ExportStatus.PENDING,
                Order.status == ready_status,
            )
            .scalar()
            or 0
        )

    def list_by_batch(self, batch_id: str) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.export_batch == batch_id)
            .order_by(Order.id)
            .all()
        )

    def mark_exported(self, orders: Sequence[Order], batch_id: str, when: datetime = None) -> None:
        """Flip every order to exported in one transaction, or none of them."""
        when = when or datetime.now(timezone.utc)
        with smart_transaction(self.db):
            for order in orders:
                if order.export_status != ExportStatus.PENDING:
                    raise OrderRepositoryException(
                        f"Order #{order.id} is not pending (current={order.export_status})"
                    )
                order.export_status = ExportStatus.EXPORTED
                order.export_timestamp = when
                order.export_batch = batch_id
            self.db.flush()

    def mark_failed(self, orders: Sequence[Order]) -> None:
        with smart_transaction(self.db):
            for order in orders:
                if order.export_status == ExportStatus.PENDING:
                    order.export_status = ExportStatus.FAILED
            self.db.flush()

    def flag_pending(self, order: Order) -> bool:
        """unflagged -> pending; returns False when the order was already flagged or done."""
        if order.export_status != ExportStatus.UNFLAGGED:
            return False
        with smart_transaction(self.db):
            order.export_status = ExportStatus.PENDING
            self.db.flush()
        return True

    def reset_order(self, order_id: int) -> Order:
        """failed -> pending, clearing the previous export stamp."""
        order = self.get(order_id)
        if not order:
            raise LookupError(f"Order #{order_id} not found")
        if order.export_status != ExportStatus.FAILED:
            raise OrderRepositoryException(
                f"Only failed orders can be reset (current={order.export_status})"
            )
        with smart_transaction(self.db):
            order.export_status = ExportStatus.PENDING
            order.export_timestamp = None
            order.export_batch = None
            self.db.flush()
        return order
