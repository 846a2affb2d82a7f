"""
Payment confirmation -> fulfilled order.

The processor delivers confirmation events at least once and in no
particular order, so ReconciliationHandler.handle() must be safe to run any
number of times, concurrently, for the same transaction:

  pending, stock_updated=False  --payment_intent.succeeded-->  completed, stock_updated=True

Claiming the order (OrderRepository.mark_completed) and every stock
decrement share one database transaction, and a concurrent duplicate that
loses the claim leaves inventory untouched. Each item runs in its own
SAVEPOINT: an item that cannot be decremented is skipped and logged, it
never keeps the order pending. Emails go out only after the commit and
never undo it.
"""
import enum

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.notification_service.mailer import Notifier
from services.notification_service.templates import (
    render_customer_confirmation,
    render_office_notification,
)
from services.order_service.repository import OrderRepository
from services.product_service.repository import ProductRepository
from shared.config.settings import Settings
from shared.observability import (
    ecomm_notifications_total,
    ecomm_stock_decrement_skipped_total,
    ecomm_webhook_events_total,
)
from .processor import PAYMENT_SUCCEEDED, PaymentEvent

logger = structlog.get_logger(__name__)


class ReconciliationOutcome(str, enum.Enum):
    IGNORED = "ignored"
    ORDER_NOT_FOUND = "order_not_found"
    ALREADY_RECONCILED = "already_reconciled"
    COMPLETED = "completed"


class ReconciliationHandler:
    def __init__(self, notifier: Notifier, settings: Settings):
        self.notifier = notifier
        self.settings = settings

    async def handle(self, db: AsyncSession, event: PaymentEvent) -> ReconciliationOutcome:
        outcome = await self._reconcile(db, event)
        ecomm_webhook_events_total.labels(event_type=event.type, outcome=outcome.value).inc()
        return outcome

    async def _reconcile(self, db: AsyncSession, event: PaymentEvent) -> ReconciliationOutcome:
        log = logger.bind(event_id=event.id, event_type=event.type, payment_intent_id=event.transaction_id)

        if event.type != PAYMENT_SUCCEEDED:
            log.info("payment_event_ignored")
            return ReconciliationOutcome.IGNORED

        order = None
        if event.transaction_id:
            order = await OrderRepository.get_order_by_payment_intent(db, event.transaction_id)
        if order is None:
            # The intent id may not be stored yet, or the order is gone.
            log.warning("payment_event_order_not_found")
            return ReconciliationOutcome.ORDER_NOT_FOUND

        log = log.bind(order_id=order.id)
        if order.stock_updated:
            log.info("payment_event_already_reconciled", status=order.status)
            return ReconciliationOutcome.ALREADY_RECONCILED

        lines = [(item.product_id, item.quantity) for item in order.items]
        total = order.total

        try:
            if not await OrderRepository.mark_completed(db, order.id):
                # A concurrent delivery of the same event committed first.
                await db.rollback()
                log.info("payment_event_already_reconciled", status="completed")
                return ReconciliationOutcome.ALREADY_RECONCILED

            for product_id, quantity in lines:
                await self._apply_item(db, product_id, quantity, log)

            await db.commit()
        except Exception:
            await db.rollback()
            log.exception("reconciliation_failed")
            raise

        log.info("order_completed", items=len(lines), total=total)

        order = await OrderRepository.get_order(db, order.id)
        await self._notify(order, event.transaction_id, log)
        return ReconciliationOutcome.COMPLETED

    async def _apply_item(self, db: AsyncSession, product_id: int, quantity: int, log):
        # One SAVEPOINT per item: a failing item is rolled back and skipped,
        # the claim and the other items still commit.
        try:
            async with db.begin_nested():
                await self._decrement(db, product_id, quantity, log)
        except Exception:
            ecomm_stock_decrement_skipped_total.labels(reason="lookup_failed").inc()
            log.exception("stock_skip_lookup_failed", product_id=product_id, requested=quantity)

    async def _decrement(self, db: AsyncSession, product_id: int, quantity: int, log):
        if await ProductRepository.decrement_stock(db, product_id, quantity):
            log.info("stock_decremented", product_id=product_id, quantity=quantity)
            return

        # Skipped items do not fail the order; the payment is already taken.
        product = await ProductRepository.get_product_by_id(db, product_id)
        if product is None:
            ecomm_stock_decrement_skipped_total.labels(reason="product_missing").inc()
            log.warning("stock_skip_product_missing", product_id=product_id)
        else:
            ecomm_stock_decrement_skipped_total.labels(reason="insufficient_stock").inc()
            log.warning(
                "stock_skip_insufficient",
                product_id=product_id,
                product_name=product.name,
                available=product.stock,
                requested=quantity,
            )

    async def _notify(self, order, transaction_id: str, log):
        customer_mail = render_customer_confirmation(order, transaction_id, self.settings.shop_name)
        await self._send("customer", order.customer_email, customer_mail, log)

        office = self.settings.office_email
        if not office:
            ecomm_notifications_total.labels(kind="office", status="skipped").inc()
            log.warning("office_notification_skipped", reason="OFFICE_EMAIL not configured")
            return
        await self._send("office", office, render_office_notification(order, transaction_id), log)

    async def _send(self, kind: str, to: str, mail, log):
        try:
            await self.notifier.send(to, mail.subject, mail.html)
        except Exception as e:
            ecomm_notifications_total.labels(kind=kind, status="failed").inc()
            log.error("notification_failed", kind=kind, to=to, error=str(e))
            return
        ecomm_notifications_total.labels(kind=kind, status="sent").inc()
        log.info("notification_sent", kind=kind, to=to)
