from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel

from .models import OrderStatus

# Request bodies are deliberately loose: OrderValidator owns the business
# checks so every rejection comes back with its own message.

class CartItemIn(BaseModel):
    product_id: Any = Field(default=None, validation_alias=AliasChoices("productId", "product", "product_id"))
    quantity: Any = None

class ShippingAddressIn(BaseModel):
    name: Any = None
    street: Any = None
    postal_code: Any = Field(default=None, validation_alias=AliasChoices("postalCode", "postal_code"))
    city: Any = None
    country: Any = None
    email: Any = None

class OrderCreate(BaseModel):
    items: Any = None
    shipping_address: Any = None
    customer_email: Any = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_intent_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class OrderItemResponse(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: float

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

class ShippingAddressResponse(BaseModel):
    name: str
    street: str
    postal_code: str
    city: str
    country: str
    email: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class OrderResponse(BaseModel):
    id: str
    items: List[OrderItemResponse]
    total: float
    status: OrderStatus
    stock_updated: bool
    shipping_address: ShippingAddressResponse
    customer_email: str
    payment_intent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
