"""
Runtime configuration, read from the environment (and a local .env file).

STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET and DATABASE_URL are required:
Settings.from_env() raises ConfigError when any of them is missing, and
main.py lets that abort startup instead of serving requests half-configured.
"""
import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from shared.errors import ConfigError

REQUIRED_ENV_VARS = ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "DATABASE_URL")


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    stripe_secret_key: str
    stripe_webhook_secret: Optional[str] = None
    database_url: str

    email_host: Optional[str] = None
    email_port: int = 587
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    office_email: Optional[str] = None

    frontend_url: Optional[str] = None
    port: int = 5000
    internal_api_key: Optional[str] = None
    otlp_endpoint: Optional[str] = None
    log_level: str = "INFO"

    currency: str = "eur"
    shop_name: str = "Woodkraft"

    processor_timeout_seconds: float = 10.0
    db_timeout_seconds: float = 10.0
    email_timeout_seconds: float = 10.0
    rate_limit_enabled: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = os.environ

        missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
        if missing:
            raise ConfigError(
                f"Required environment variables are missing: {', '.join(missing)}"
            )

        return cls(
            stripe_secret_key=environ["STRIPE_SECRET_KEY"],
            stripe_webhook_secret=environ["STRIPE_WEBHOOK_SECRET"],
            database_url=environ["DATABASE_URL"],
            email_host=environ.get("EMAIL_HOST") or None,
            email_port=int(environ.get("EMAIL_PORT") or 587),
            email_user=environ.get("EMAIL_USER") or None,
            email_pass=environ.get("EMAIL_PASS") or None,
            office_email=environ.get("OFFICE_EMAIL") or None,
            frontend_url=environ.get("FRONTEND_URL") or None,
            port=int(environ.get("PORT") or 5000),
            internal_api_key=environ.get("INTERNAL_API_KEY") or None,
            otlp_endpoint=environ.get("OTLP_ENDPOINT") or None,
            log_level=environ.get("LOG_LEVEL") or "INFO",
            currency=environ.get("PAYMENT_CURRENCY") or "eur",
            shop_name=environ.get("SHOP_NAME") or "Woodkraft",
            processor_timeout_seconds=float(environ.get("PROCESSOR_TIMEOUT_SECONDS") or 10),
            db_timeout_seconds=float(environ.get("DB_TIMEOUT_SECONDS") or 10),
            email_timeout_seconds=float(environ.get("EMAIL_TIMEOUT_SECONDS") or 10),
            rate_limit_enabled=_flag(environ.get("RATE_LIMIT_ENABLED"), True),
        )

    def describe(self) -> dict:
        """Startup summary that never includes secret values."""
        return {
            "stripe_secret_key": "set" if self.stripe_secret_key else "missing",
            "stripe_webhook_secret": "set" if self.stripe_webhook_secret else "missing",
            "database_url": "set" if self.database_url else "missing",
            "email_host": self.email_host,
            "office_email": self.office_email,
            "frontend_url": self.frontend_url,
            "port": self.port,
        }
