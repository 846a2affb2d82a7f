from prometheus_client import Counter

# Business Metrics
ecomm_orders_total = Counter(
    "ecomm_orders_total",
    "Order submissions processed",
    ["status"] # Labels: 'created', 'rejected'
)

ecomm_payment_intents_total = Counter(
    "ecomm_payment_intents_total",
    "Payment intents requested from the processor",
    ["status"] # Labels: 'created', 'failed'
)

ecomm_webhook_events_total = Counter(
    "ecomm_webhook_events_total",
    "Payment confirmation events handled",
    ["event_type", "outcome"] # outcome: ReconciliationOutcome value
)

ecomm_stock_decrement_skipped_total = Counter(
    "ecomm_stock_decrement_skipped_total",
    "Order items whose stock decrement was skipped during reconciliation",
    ["reason"] # Labels: 'product_missing', 'insufficient_stock', 'lookup_failed'
)

ecomm_notifications_total = Counter(
    "ecomm_notifications_total",
    "Order emails sent after reconciliation",
    ["kind", "status"] # kind: 'customer', 'office'; status: 'sent', 'failed', 'skipped'
)
