# backend/schemas/product_type.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class ProductTypeIn(BaseModel):
    name: str = Field(min_length=1, description="Type name")


class ProductTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime
