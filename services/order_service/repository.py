from typing import Any, cast

from sqlalchemy import func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Order, OrderStatus

class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order):
        db.add(order)
        await db.commit()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_order_by_payment_intent(db: AsyncSession, payment_intent_id: str):
        result = await db.execute(
            select(Order)
            .where(Order.payment_intent_id == payment_intent_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def save(db: AsyncSession, order: Order):
        await db.commit()
        return order

    @staticmethod
    async def set_payment_intent(db: AsyncSession, order: Order, payment_intent_id: str):
        order.payment_intent_id = payment_intent_id
        await db.commit()
        return order

    @staticmethod
    async def mark_completed(db: AsyncSession, order_id: str) -> bool:
        """Flip status and stock_updated together, exactly once per order.

        The WHERE clause is the idempotency guard: of two concurrent
        callers only one sees a changed row, the other waits on the row
        lock and then matches nothing. The caller commits.
        """
        stmt = (
            update(Order)
            .where(Order.id == order_id, Order.stock_updated.is_(False))
            .values(status=OrderStatus.COMPLETED.value, stock_updated=True)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], await db.execute(stmt))
        return result.rowcount == 1

    @staticmethod
    async def count_orders(db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(Order))
        return result.scalar_one()
