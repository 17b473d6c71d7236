# backend/routes/products.py
import io
from typing import Optional, List

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from models.product import Product, KitProduct
from schemas.product import ProductCreate, ProductUpdate, ProductOut, QuantityUpdate
from utils.audit import write_log
from utils.errors import NotFoundError
from utils.importers import PRODUCT_COLUMNS
from utils.inventory import apply_quantity, create_product, get_product_or_404
from utils.text import normalized_includes
from utils.tokenJWT import get_current_user

router = APIRouter(tags=["Products"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# ---- HELPERS ----
_SORT_KEYS = {
    "name": lambda p: (p.name or "").casefold(),
    "type": lambda p: (p.type_name or "").casefold(),
    "quantity": lambda p: p.quantity,
    "cost_price": lambda p: p.cost_price,
    "sale_price": lambda p: p.sale_price,
    "profit_rate": lambda p: p.profit_rate,
    "created_at": lambda p: p.created_at,
}


def _load_or_404(db: Session, product_id: str) -> Product:
    try:
        return get_product_or_404(db, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=List[ProductOut])
def list_products(
    q: Optional[str] = Query(None, description="Search in name and type name (accents and case ignored)"),
    type_id: Optional[List[str]] = Query(None),
    is_kit: Optional[bool] = Query(None),
    sort_by: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Product)
    if is_kit is not None:
        query = query.filter(Product.is_kit == is_kit)
    if type_id:
        query = query.filter(Product.type_id.in_(type_id))

    items: List[Product] = query.order_by(Product.created_at.desc()).all()

    if q:
        items = [p for p in items if normalized_includes(p.name, q) or normalized_includes(p.type_name, q)]

    sort_key = _SORT_KEYS.get(sort_by.lower(), _SORT_KEYS["created_at"])
    items.sort(key=sort_key, reverse=(order == "desc"))
    return items


# Current products in the import layout, so the file can be edited and re-imported
@router.get("/products/export")
def export_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = []
    for p in db.query(Product).filter(Product.is_kit.is_(False)).order_by(Product.name.asc()).all():
        competitor = p.competitor_prices[0] if p.competitor_prices else None
        rows.append({
            "name": p.name,
            "type": p.type_name,
            "cost_price": p.cost_price,
            "profit_rate": p.profit_rate,
            "sale_price": p.sale_price,
            "competitor_price": competitor.price if competitor else None,
            "competitor_name": competitor.competitor_name if competitor else None,
        })

    frame = pd.DataFrame(rows, columns=[c.key for c in PRODUCT_COLUMNS])
    frame.columns = [c.label for c in PRODUCT_COLUMNS]

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name="Produtos", index=False)
    buffer.seek(0)

    return StreamingResponse(
        buffer, media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="produtos.xlsx"'},
    )


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _load_or_404(db, product_id)


@router.post("/products", response_model=ProductOut, status_code=201)
def add_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = create_product(db, payload)
    write_log(
        db, user_id=current_user.id, action="KIT_CREATE" if product.is_kit else "PRODUCT_CREATE",
        resource="products", meta={"id": product.id, "name": product.name},
    )
    return product


@router.patch("/products/{product_id}", response_model=ProductOut)
def edit_product(
    product_id: str,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _load_or_404(db, product_id)

    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise HTTPException(status_code=400, detail="Name cannot be empty")
    for field in ("cost_price", "profit_rate", "sale_price"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
    if "quantity" in changes:
        apply_quantity(product, quantity=changes.pop("quantity"))

    for key, value in changes.items():
        setattr(product, key, value)

    db.commit()
    db.refresh(product)
    write_log(db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
              meta={"id": product.id, "fields": sorted(payload.model_fields_set)})
    return product


@router.patch("/products/{product_id}/quantity", response_model=ProductOut)
def update_quantity(
    product_id: str,
    payload: QuantityUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _load_or_404(db, product_id)
    before = product.quantity
    apply_quantity(product, quantity=payload.quantity, delta=payload.delta)
    db.commit()
    db.refresh(product)
    write_log(db, user_id=current_user.id, action="QUANTITY_SET", resource="products",
              meta={"id": product.id, "from": before, "to": product.quantity})
    return product


# =========================
# DELETE
# =========================
@router.delete("/products/{product_id}")
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _load_or_404(db, product_id)
    pid, pname = product.id, product.name

    # Memberships of this product inside other kits go with it
    db.query(KitProduct).filter(KitProduct.product_id == pid).delete(synchronize_session=False)
    db.delete(product)
    db.commit()

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products", meta={"id": pid})
    return {"detail": f"Product '{pname}' deleted"}
