from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class OfferCreate(BaseModel):
    product_id: UUID


class OffererSummary(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class OfferedProductSummary(BaseModel):
    id: str
    title: str
    price: Decimal
    seller_id: str

    model_config = ConfigDict(from_attributes=True)


class OfferRead(BaseModel):
    id: str
    offered_at: datetime
    user_id: str
    product_id: str
    user: OffererSummary
    product: OfferedProductSummary

    model_config = ConfigDict(from_attributes=True)
