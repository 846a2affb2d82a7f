import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from shared.config.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed" # terminal, set only by payment reconciliation


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    total = Column(Float, nullable=False) # calculated at creation, never changed
    status = Column(String(16), nullable=False, default=OrderStatus.PENDING.value)
    # Idempotency guard: flips to True together with status=completed, once.
    stock_updated = Column(Boolean, nullable=False, default=False)

    customer_email = Column(String, nullable=False)
    shipping_name = Column(String, nullable=False)
    shipping_street = Column(String, nullable=False)
    shipping_postal_code = Column(String, nullable=False)
    shipping_city = Column(String, nullable=False)
    shipping_country = Column(String, nullable=False)
    shipping_email = Column(String, nullable=False)

    # Reconciliation looks orders up by the processor's transaction id
    payment_intent_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )

    @property
    def shipping_address(self) -> dict:
        return {
            "name": self.shipping_name,
            "street": self.shipping_street,
            "postal_code": self.shipping_postal_code,
            "city": self.shipping_city,
            "country": self.shipping_country,
            "email": self.shipping_email,
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # No foreign key: the product may be deleted before the payment settles.
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    # Catalog snapshot taken at creation, used to render confirmation emails
    name = Column(String, nullable=False)
    unit_price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
