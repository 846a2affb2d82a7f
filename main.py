"""
Storefront order & payment backend.

Run with:  uvicorn main:create_app --factory --port $PORT
       or: python main.py
"""
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config import database
from shared.config.settings import Settings
from shared.errors import register_exception_handlers
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.product_service import models as product_models
from services.order_service import models as order_models

from services.product_service.router import public_router as product_router, admin_router as product_admin_router
from services.order_service.router import router as order_router
from services.payment_service.router import router as payment_router
from services.payment_service.processor import PaymentProcessor, StripePaymentProcessor
from services.notification_service.mailer import Notifier, SmtpNotifier

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    payment_processor: Optional[PaymentProcessor] = None,
    notifier: Optional[Notifier] = None,
    observability: bool = True,
) -> FastAPI:
    # Raises ConfigError when a required secret is missing: no app, no server.
    settings = settings or Settings.from_env()

    app = FastAPI(title="Storefront Orders", version="1.0.0")
    app.state.settings = settings
    app.state.payment_processor = payment_processor or StripePaymentProcessor(
        settings.stripe_secret_key, timeout=settings.processor_timeout_seconds
    )
    app.state.notifier = notifier or SmtpNotifier.from_settings(settings)

    # --- OBSERVABILITY BOOTSTRAP ---
    if observability:
        setup_observability(app, "storefront_orders", settings.otlp_endpoint, settings.log_level)

    # --- SECURITY SETUP ---
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    if settings.frontend_url:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.frontend_url],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(product_router, prefix="/api/products", tags=["products"])
    app.include_router(product_admin_router, prefix="/api/products", tags=["products"])
    app.include_router(order_router, prefix="/api/orders", tags=["orders"])
    app.include_router(payment_router, prefix="/api/payment", tags=["payment"])

    @app.on_event("startup")
    async def startup_event():
        logger.info("config_loaded", **settings.describe())
        database.init_database(settings.database_url, timeout=settings.db_timeout_seconds)
        await database.create_tables()
        logger.info("database_connected")

    @app.on_event("shutdown")
    async def shutdown_event():
        await database.dispose_database()

    return app


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
