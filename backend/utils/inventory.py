# backend/utils/inventory.py
"""Write helpers shared by the collection routes and the spreadsheet importers."""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.product import Product, CompetitorPrice, KitProduct
from models.product_type import ProductType
from schemas.product import ProductCreate, CompetitorPriceIn, KitProductIn
from utils.errors import InvalidKitError, NotFoundError
from utils.pricing import PriceForm


def create_product_type(db: Session, name: str) -> ProductType:
    product_type = ProductType(name=name.strip())
    db.add(product_type)
    db.commit()
    db.refresh(product_type)
    return product_type


def type_key(name: Optional[str]) -> str:
    # Full Unicode case folding; SQLite lower() only folds ASCII
    return (name or "").strip().casefold()


def types_by_name(db: Session) -> Dict[str, ProductType]:
    """All product types keyed by folded name; the first one wins on duplicates."""
    index: Dict[str, ProductType] = {}
    for product_type in db.query(ProductType).order_by(ProductType.created_at.asc()).all():
        index.setdefault(type_key(product_type.name), product_type)
    return index


def create_product(db: Session, data: ProductCreate) -> Product:
    cost = data.cost_price
    rate, price = data.profit_rate, data.sale_price

    # Fill whichever side of cost/rate/price was left out: a given price drives the rate
    if price is None or rate is None:
        form = PriceForm(cost_price=cost, profit_rate=rate or 0, sale_price=price or 0,
                         mode="rate" if price is None else "price")
        form.set_cost(cost)
        rate, price = form.profit_rate, max(0.0, form.sale_price)

    product = Product(
        name=data.name,
        type_id=data.type_id,
        cost_price=cost,
        profit_rate=rate,
        sale_price=price,
        quantity=max(0, data.quantity),
        is_kit=data.is_kit,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def get_product_or_404(db: Session, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def add_competitor_prices(db: Session, product_id: str, items: Iterable[CompetitorPriceIn]) -> List[CompetitorPrice]:
    get_product_or_404(db, product_id)
    start = db.query(func.count(CompetitorPrice.id)).filter(CompetitorPrice.product_id == product_id).scalar() or 0
    rows = [
        CompetitorPrice(product_id=product_id, competitor_name=item.competitor_name,
                        price=item.price, position=start + i)
        for i, item in enumerate(items)
    ]
    db.add_all(rows)
    db.commit()
    for r in rows:
        db.refresh(r)
    return rows


def add_kit_products(db: Session, kit_id: str, items: Iterable[KitProductIn]) -> List[KitProduct]:
    items = list(items)
    kit = get_product_or_404(db, kit_id)
    if not kit.is_kit:
        raise InvalidKitError(f"Product '{kit.name}' is not a kit")

    member_ids = {item.product_id for item in items}
    members = {p.id: p for p in db.query(Product).filter(Product.id.in_(member_ids)).all()}
    for item in items:
        member = members.get(item.product_id)
        if member is None:
            raise NotFoundError(f"Product {item.product_id} not found")
        # Kits are built from plain products only
        if member.is_kit:
            raise InvalidKitError(f"'{member.name}' is a kit and cannot be part of another kit")
        if item.quantity < 1:
            raise InvalidKitError("Kit item quantity must be at least 1")

    start = db.query(func.count(KitProduct.id)).filter(KitProduct.kit_id == kit_id).scalar() or 0
    rows = [
        KitProduct(kit_id=kit_id, product_id=item.product_id, quantity=item.quantity, position=start + i)
        for i, item in enumerate(items)
    ]
    db.add_all(rows)
    db.commit()
    for r in rows:
        db.refresh(r)
    return rows


def apply_quantity(product: Product, quantity: Optional[int] = None, delta: Optional[int] = None) -> int:
    """Absolute or relative quantity change, never below zero."""
    target = product.quantity + delta if delta is not None else quantity
    product.quantity = max(0, target or 0)
    return product.quantity
