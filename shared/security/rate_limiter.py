from slowapi import Limiter
from slowapi.util import get_remote_address

# Checkout endpoints are public, so they are limited per client address.
CHECKOUT_RATE_LIMIT = "20/minute"

limiter = Limiter(key_func=get_remote_address)
