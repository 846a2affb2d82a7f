from pydantic import BaseModel
from pydantic.alias_generators import to_camel

class PaymentIntentCreate(BaseModel):
    order_id: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class PaymentIntentResponse(BaseModel):
    client_secret: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class WebhookAck(BaseModel):
    received: bool = True
