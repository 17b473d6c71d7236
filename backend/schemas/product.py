# backend/schemas/product.py
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---- sub-collections ----
class CompetitorPriceIn(BaseModel):
    competitor_name: str
    price: float = Field(ge=0)


class CompetitorPriceCreate(CompetitorPriceIn):
    product_id: str


class CompetitorPriceOut(ORMBase):
    id: str
    product_id: str
    competitor_name: str
    price: float


class KitProductIn(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class KitProductCreate(KitProductIn):
    kit_id: str


class KitProductOut(ORMBase):
    id: str
    kit_id: str
    product_id: str
    quantity: int


# ---- products ----
class ProductCreate(BaseModel):
    """
    New product row. Either sale_price or profit_rate may be left out; the
    missing one is derived from cost_price.
    """
    name: str = Field(min_length=1)
    type_id: Optional[str] = None
    cost_price: float = Field(default=0, ge=0)
    profit_rate: Optional[float] = None
    sale_price: Optional[float] = Field(default=None, ge=0)
    quantity: int = 0
    is_kit: bool = False


# Partial update - all fields optional
class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type_id: Optional[str] = None
    cost_price: Optional[float] = Field(None, ge=0)
    profit_rate: Optional[float] = None
    sale_price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = None


class QuantityUpdate(BaseModel):
    """Absolute quantity or a delta; the result is clamped at zero."""
    quantity: Optional[int] = None
    delta: Optional[int] = None

    @model_validator(mode="after")
    def _exactly_one(self):
        if (self.quantity is None) == (self.delta is None):
            raise ValueError("Provide exactly one of 'quantity' or 'delta'")
        return self


class ProductOut(ORMBase):
    id: str
    name: str
    type_id: Optional[str] = None
    type_name: Optional[str] = None
    cost_price: float
    profit_rate: float
    sale_price: float
    quantity: int
    is_kit: bool
    created_at: datetime
    competitor_prices: List[CompetitorPriceOut] = []
    kit_products: List[KitProductOut] = []
