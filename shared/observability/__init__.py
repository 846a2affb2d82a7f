from .setup import setup_observability
from .metrics import (
    ecomm_orders_total,
    ecomm_payment_intents_total,
    ecomm_webhook_events_total,
    ecomm_stock_decrement_skipped_total,
    ecomm_notifications_total
)
