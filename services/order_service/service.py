import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import ConflictError, NotFoundError, OrderValidationError
from shared.observability import ecomm_orders_total
from .models import Order, OrderItem, OrderStatus
from .repository import OrderRepository
from .schemas import OrderCreate, OrderUpdate
from .validation import OrderValidator

logger = structlog.get_logger(__name__)

class OrderService:
    @staticmethod
    async def create_order(db: AsyncSession, data: OrderCreate):
        try:
            validated = await OrderValidator.validate(db, data)
        except OrderValidationError as e:
            ecomm_orders_total.labels(status="rejected").inc()
            logger.info("order_rejected", reason=e.message)
            raise

        address = validated.shipping_address
        order = Order(
            total=validated.total,
            status=OrderStatus.PENDING.value,
            stock_updated=False,
            customer_email=validated.customer_email,
            shipping_name=address.name,
            shipping_street=address.street,
            shipping_postal_code=address.postal_code,
            shipping_city=address.city,
            shipping_country=address.country,
            shipping_email=address.email,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    name=item.name,
                    unit_price=item.unit_price,
                )
                for item in validated.items
            ],
        )

        order = await OrderRepository.create_order(db, order)
        ecomm_orders_total.labels(status="created").inc()
        logger.info("order_created", order_id=order.id, total=order.total, items=len(order.items))
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    async def update_order(db: AsyncSession, order_id: str, data: OrderUpdate):
        order = await OrderService.get_order(db, order_id)

        # status is owned by payment reconciliation; it moves together with
        # stock_updated and cannot be set from outside.
        if data.status is not None and data.status.value != order.status:
            raise ConflictError(
                f"Order status cannot be changed from '{order.status}' to "
                f"'{data.status.value}'; it is set by payment confirmation"
            )
        if data.payment_intent_id:
            order.payment_intent_id = data.payment_intent_id

        order = await OrderRepository.save(db, order)
        logger.info("order_updated", order_id=order.id, payment_intent_id=order.payment_intent_id)
        return order
