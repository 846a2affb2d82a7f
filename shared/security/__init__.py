from .api_key import verify_api_key
from .dependencies import verify_internal_api_key
from .rate_limiter import limiter, CHECKOUT_RATE_LIMIT

__all__ = [
    "verify_api_key",
    "verify_internal_api_key",
    "limiter",
    "CHECKOUT_RATE_LIMIT"
]
