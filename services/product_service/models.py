from sqlalchemy import CheckConstraint, Column, Integer, String, Float
from shared.config.database import Base

class Product(Base):
    __tablename__ = "products"
    # Reconciliation decrements conditionally; the constraint backs that up
    # for every other writer.
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
