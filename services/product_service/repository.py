from typing import Any, Iterable, cast

from sqlalchemy import delete, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Product

class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product):
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def get_all_products(db: AsyncSession):
        result = await db.execute(select(Product).order_by(Product.id))
        return result.scalars().all()

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int):
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_products_by_ids(db: AsyncSession, product_ids: Iterable[int]):
        ids = set(product_ids)
        if not ids:
            return []
        result = await db.execute(select(Product).where(Product.id.in_(ids)))
        return result.scalars().all()

    @staticmethod
    async def decrement_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """Take `quantity` units out of stock if, and only if, that many are left.

        A single conditional UPDATE, so concurrent decrements of the same
        product cannot lose each other's writes. Returns False when the
        product is gone or short on stock. The caller commits.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], await db.execute(stmt))
        return result.rowcount == 1

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: int) -> bool:
        result = cast(
            CursorResult[Any],
            await db.execute(delete(Product).where(Product.id == product_id)),
        )
        await db.commit()
        return result.rowcount > 0
