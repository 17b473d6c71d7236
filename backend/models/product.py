# backend/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base
from models.product_type import ProductType  # noqa: F401  (mapper target)


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Model Product
# A sellable item or a kit. Cost, profit rate and sale price are stored
# independently; the relation between them is kept by whoever writes them.
class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, index=True)

    # No FK constraint: a deleted type leaves a dangling reference behind.
    type_id = Column(String(32), nullable=True, index=True)

    cost_price = Column(Float, CheckConstraint("cost_price >= 0"), nullable=False, default=0)
    profit_rate = Column(Float, nullable=False, default=0)
    sale_price = Column(Float, CheckConstraint("sale_price >= 0"), nullable=False, default=0)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)

    is_kit = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)

    product_type = relationship(
        "ProductType",
        primaryjoin="foreign(Product.type_id) == ProductType.id",
        lazy="joined",
        uselist=False,
        viewonly=True,
    )
    competitor_prices = relationship(
        "CompetitorPrice",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="CompetitorPrice.position",
    )
    kit_products = relationship(
        "KitProduct",
        foreign_keys="KitProduct.kit_id",
        back_populates="kit",
        cascade="all, delete-orphan",
        order_by="KitProduct.position",
    )

    @property
    def type_name(self):
        return self.product_type.name if self.product_type else None


# Price of the same product at a competitor. Owned by the product.
class CompetitorPrice(Base):
    __tablename__ = "competitor_prices"

    id = Column(String(32), primary_key=True, default=_new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    competitor_name = Column(String, nullable=False)
    price = Column(Float, nullable=False, default=0)

    # Insertion order within the owning product
    position = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="competitor_prices")


# Kit membership: which product, how many units. Owned by the kit.
class KitProduct(Base):
    __tablename__ = "kit_products"

    id = Column(String(32), primary_key=True, default=_new_id)
    kit_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False, default=1)
    position = Column(Integer, nullable=False, default=0)

    kit = relationship("Product", foreign_keys=[kit_id], back_populates="kit_products")
    product = relationship("Product", foreign_keys=[product_id])
