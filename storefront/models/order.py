from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.enums import OrderStatus


class Order(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_ids: list[int]
    total: float
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime | None = None


class OrderCreate(BaseModel):
    product_ids: list[int] = Field(min_length=1)
    total: float = Field(ge=0)
    status: OrderStatus = OrderStatus.PENDING


class OrderUpdate(BaseModel):
    product_ids: list[int] | None = Field(default=None, min_length=1)
    total: float | None = Field(default=None, ge=0)
    status: OrderStatus | None = None
