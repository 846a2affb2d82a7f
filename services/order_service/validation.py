"""
Cart submission checks, run before an order is created.

The checks run in a fixed order and the first failure wins, so the client
always gets the most basic problem first (an empty cart before a bad email,
a bad email before an unknown product). Nothing here writes: stock is only
compared, never reserved.
"""
import re
from dataclasses import dataclass
from typing import Any, List

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.product_service.repository import ProductRepository
from shared.errors import OrderValidationError
from .schemas import CartItemIn, OrderCreate, ShippingAddressIn

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
ADDRESS_FIELDS = ("name", "street", "postal_code", "city", "country", "email")


@dataclass(frozen=True)
class ValidatedItem:
    product_id: int
    quantity: int
    name: str
    unit_price: float


@dataclass(frozen=True)
class ValidatedAddress:
    name: str
    street: str
    postal_code: str
    city: str
    country: str
    email: str


@dataclass(frozen=True)
class ValidatedOrder:
    items: List[ValidatedItem]
    total: float
    shipping_address: ValidatedAddress
    customer_email: str


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.search(value) is not None


def parse_product_id(value: Any):
    """Positive integer ids; numeric strings are accepted. None if invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def is_valid_quantity(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _text(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return ""
    return str(value).strip()


class OrderValidator:

    @staticmethod
    def check_items(items: Any) -> List[tuple]:
        if not isinstance(items, list) or not items:
            raise OrderValidationError("Items array is required and must not be empty")

        parsed = []
        for raw in items:
            item = CartItemIn.model_validate(raw) if isinstance(raw, dict) else CartItemIn()
            if item.product_id is None or item.product_id == "":
                raise OrderValidationError("Each item must have a product ID")
            product_id = parse_product_id(item.product_id)
            if product_id is None:
                raise OrderValidationError(f"Invalid product ID: {item.product_id}")
            if not is_valid_quantity(item.quantity):
                raise OrderValidationError("Each item must have a valid quantity")
            parsed.append((product_id, item.quantity))
        return parsed

    @staticmethod
    def check_address(raw: Any) -> ValidatedAddress:
        if not isinstance(raw, dict):
            raise OrderValidationError("Shipping address is required")
        address = ShippingAddressIn.model_validate(raw)

        values = {field: _text(getattr(address, field)) for field in ADDRESS_FIELDS}
        if not all(values.values()):
            raise OrderValidationError("All shipping address fields are required")
        if not is_valid_email(values["email"]):
            raise OrderValidationError("Invalid email address")
        return ValidatedAddress(**values)

    @staticmethod
    def check_customer_email(value: Any) -> str:
        if not is_valid_email(value):
            raise OrderValidationError("Valid customer email is required")
        return value.strip()

    @staticmethod
    async def validate(db: AsyncSession, data: OrderCreate) -> ValidatedOrder:
        requested = OrderValidator.check_items(data.items)
        address = OrderValidator.check_address(data.shipping_address)
        customer_email = OrderValidator.check_customer_email(data.customer_email)

        distinct_ids = {product_id for product_id, _ in requested}
        products = await ProductRepository.get_products_by_ids(db, distinct_ids)
        if len(products) != len(distinct_ids):
            missing = sorted(distinct_ids - {p.id for p in products})
            logger.info("order_unknown_products", product_ids=missing)
            raise OrderValidationError("One or more product IDs are invalid")

        by_id = {p.id: p for p in products}
        items = []
        total = 0.0
        for product_id, quantity in requested:
            product = by_id[product_id]
            if quantity > product.stock:
                logger.info(
                    "order_insufficient_stock",
                    product_id=product_id,
                    requested=quantity,
                    available=product.stock,
                )
                raise OrderValidationError(f"Insufficient stock for {product.name}")
            # Catalog price only; clients never send prices.
            total += product.price * quantity
            items.append(ValidatedItem(product_id, quantity, product.name, product.price))

        return ValidatedOrder(
            items=items,
            total=round(total, 2),
            shipping_address=address,
            customer_email=customer_email,
        )
