from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    description: str | None = None
    in_stock: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    price: float = Field(ge=0)
    description: str | None = None
    in_stock: bool = True


class ProductUpdate(BaseModel):
    """Partial update: only fields that were sent are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    price: float | None = Field(default=None, ge=0)
    description: str | None = None
    in_stock: bool | None = None
