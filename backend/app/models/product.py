from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    # partner product code; may be missing for badly configured products
    sku = Column(String(64), unique=True, index=True, nullable=True)
    name = Column(String(256), nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    components = relationship(
        "BundleComponent",
        foreign_keys="BundleComponent.bundle_id",
        back_populates="bundle",
        cascade="all, delete-orphan",
        order_by="BundleComponent.id",
    )

    @property
    def is_bundle(self) -> bool:
        return len(self.components) > 0

    def __repr__(self):
        return f"<Product sku={self.sku} name={self.name}>"


class BundleComponent(Base):
    """One component of a bundle product: `quantity` units per bundle sold."""

    __tablename__ = "bundle_components"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bundle_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    component_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    bundle = relationship("Product", foreign_keys=[bundle_id], back_populates="components")
    component = relationship("Product", foreign_keys=[component_id])
