from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.dependencies import get_notifier, get_payment_processor, get_settings
from shared.config.settings import Settings
from shared.security import CHECKOUT_RATE_LIMIT, limiter

from .reconciliation import ReconciliationHandler
from .schemas import PaymentIntentCreate, PaymentIntentResponse, WebhookAck
from .service import PaymentService

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_reconciliation_handler(
    notifier=Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> ReconciliationHandler:
    return ReconciliationHandler(notifier, settings)


@router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
@limiter.limit(CHECKOUT_RATE_LIMIT)
async def create_payment_intent(
    request: Request,
    payload: PaymentIntentCreate,
    db: AsyncSession = Depends(get_db),
    processor=Depends(get_payment_processor),
    settings: Settings = Depends(get_settings),
):
    client_secret = await PaymentService.create_payment_intent(db, processor, payload.order_id, settings)
    return PaymentIntentResponse(client_secret=client_secret)


# The signature covers the exact raw bytes, so the body is read unparsed.
@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
    processor=Depends(get_payment_processor),
    handler: ReconciliationHandler = Depends(get_reconciliation_handler),
    settings: Settings = Depends(get_settings),
):
    secret = settings.stripe_webhook_secret
    if not secret:
        logger.error("webhook_secret_missing")
        raise HTTPException(status_code=400, detail="STRIPE_WEBHOOK_SECRET is not defined")

    payload = await request.body()
    event = processor.construct_event(payload, stripe_signature, secret)
    logger.info(
        "webhook_received",
        event_id=event.id,
        event_type=event.type,
        payment_intent_id=event.transaction_id,
        payment_method_types=event.payment_method_types,
    )

    await handler.handle(db, event)
    return WebhookAck(received=True)
