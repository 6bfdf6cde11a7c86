from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db import Base


class ExportStatus:
    UNFLAGGED = "unflagged"
    PENDING = "pending"
    EXPORTED = "exported"
    FAILED = "failed"


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), unique=True, nullable=True, index=True)
    status = Column(
        String(32), nullable=False, default="pending"
    )  # pending, processing, completed, cancelled
    placed_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    customer_id = Column(Integer, nullable=True)  # NULL/0 = guest checkout

    shipping_first_name = Column(String(128), nullable=True)
    shipping_last_name = Column(String(128), nullable=True)
    shipping_address_1 = Column(String(255), nullable=True)
    shipping_address_2 = Column(String(255), nullable=True)
    shipping_city = Column(String(128), nullable=True)
    shipping_county = Column(String(128), nullable=True)
    shipping_postcode = Column(String(32), nullable=True)

    billing_first_name = Column(String(128), nullable=True)
    billing_last_name = Column(String(128), nullable=True)
    billing_address_1 = Column(String(255), nullable=True)
    billing_address_2 = Column(String(255), nullable=True)
    billing_city = Column(String(128), nullable=True)
    billing_county = Column(String(128), nullable=True)
    billing_postcode = Column(String(32), nullable=True)
    billing_phone = Column(String(64), nullable=True)
    billing_email = Column(String(255), nullable=True)

    export_status = Column(
        String(16), nullable=False, default=ExportStatus.UNFLAGGED, index=True
    )
    export_timestamp = Column(DateTime, nullable=True)
    export_batch = Column(String(32), nullable=True, index=True)
    data = Column(JSON, nullable=True)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
    )

    def __repr__(self):
        return f"<Order id={self.id} status={self.status} export={self.export_status}>"


class OrderLine(Base):
    __tablename__ = "order_lines"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    name = Column(String(255), nullable=True)
    qty = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="lines")
    product = relationship("Product")
