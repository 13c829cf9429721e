from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shared.config.database import Base

ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")
CANCELLABLE_STATUSES = ("pending", "confirmed", "processing")
FINAL_STATUSES = ("delivered", "cancelled")
PAYMENT_METHODS = ("cash", "card", "bank_transfer")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    shipping_address = Column(String(500), nullable=False)
    phone = Column(String(20), nullable=False)
    payment_method = Column(String(20), nullable=False) # cash, card, bank_transfer
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    total_amount = Column(Numeric(10, 2), nullable=False) # calculated at creation
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    lines = relationship(
        "OrderLine",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
    )


class OrderLine(Base):
    """Snapshot of a cart line at checkout. Never updated afterwards."""
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)
    notes = Column(String(500), nullable=True)

    order = relationship("Order", back_populates="lines")
