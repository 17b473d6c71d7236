# backend/schemas/dashboard.py
from typing import List
from pydantic import BaseModel

from schemas.product import ProductOut


class DashboardSummary(BaseModel):
    product_types: int
    products: int
    kits: int
    total_stock: int
    total_value: float
    total_cost: float
    potential_profit: float
    recent_products: List[ProductOut]
