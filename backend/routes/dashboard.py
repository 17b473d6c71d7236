# backend/routes/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from models.product_type import ProductType
from models.users import User
from schemas.dashboard import DashboardSummary
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

RECENT_PRODUCTS = 6


@router.get("/summary", response_model=DashboardSummary)
def get_dashboard_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product_types = db.query(func.count(ProductType.id)).scalar() or 0
    products = db.query(func.count(Product.id)).filter(Product.is_kit.is_(False)).scalar() or 0
    kits = db.query(func.count(Product.id)).filter(Product.is_kit.is_(True)).scalar() or 0

    # Stock totals over every row, kits included
    total_stock, total_value, total_cost = db.query(
        func.coalesce(func.sum(Product.quantity), 0),
        func.coalesce(func.sum(Product.sale_price * Product.quantity), 0.0),
        func.coalesce(func.sum(Product.cost_price * Product.quantity), 0.0),
    ).one()

    recent = db.query(Product).order_by(Product.created_at.desc()).limit(RECENT_PRODUCTS).all()

    return DashboardSummary(
        product_types=product_types,
        products=products,
        kits=kits,
        total_stock=int(total_stock),
        total_value=float(total_value),
        total_cost=float(total_cost),
        potential_profit=float(total_value) - float(total_cost),
        recent_products=recent,
    )
