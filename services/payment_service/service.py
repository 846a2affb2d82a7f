from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.repository import OrderRepository
from shared.config.settings import Settings
from shared.errors import ExternalServiceError, NotFoundError
from shared.observability import ecomm_payment_intents_total
from .processor import PaymentProcessor

logger = structlog.get_logger(__name__)


def to_minor_units(total: float) -> int:
    """12.345 -> 1235: cents, rounding halves up."""
    return int((Decimal(str(total)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    @staticmethod
    async def create_payment_intent(
        db: AsyncSession,
        processor: PaymentProcessor,
        order_id: str,
        settings: Settings,
    ) -> str:
        logger.info("payment_intent_requested", order_id=order_id)

        order = await OrderRepository.get_order(db, order_id)
        if not order:
            logger.info("payment_intent_order_not_found", order_id=order_id)
            raise NotFoundError("Order not found")

        # No guard against a second call: each call opens a new intent at the
        # processor and the latest id replaces the stored one.
        try:
            intent = await processor.create_payment_intent(
                amount=to_minor_units(order.total),
                currency=settings.currency,
                metadata={"orderId": order.id},
            )
        except ExternalServiceError as e:
            ecomm_payment_intents_total.labels(status="failed").inc()
            logger.error("payment_intent_failed", order_id=order.id, error=e.message)
            raise

        if order.payment_intent_id and order.payment_intent_id != intent.id:
            logger.warning(
                "payment_intent_replaced",
                order_id=order.id,
                previous_payment_intent_id=order.payment_intent_id,
                payment_intent_id=intent.id,
            )

        await OrderRepository.set_payment_intent(db, order, intent.id)
        ecomm_payment_intents_total.labels(status="created").inc()
        logger.info("payment_intent_created", order_id=order.id, payment_intent_id=intent.id)
        return intent.client_secret
