# backend/routes/kit_products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from models.product import KitProduct
from models.users import User
from schemas.product import KitProductCreate, KitProductIn, KitProductOut
from utils.audit import write_log
from utils.errors import InvalidKitError, NotFoundError
from utils.inventory import add_kit_products
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/kit-products", tags=["Kit products"])


@router.get("", response_model=List[KitProductOut])
def list_kit_products(
    kit_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(KitProduct)
    if kit_id:
        query = query.filter(KitProduct.kit_id == kit_id)
    return query.order_by(KitProduct.kit_id, KitProduct.position).all()


@router.post("", response_model=List[KitProductOut], status_code=201)
def create_kit_products(
    payload: List[KitProductCreate],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload:
        return []
    kit_ids = {item.kit_id for item in payload}
    if len(kit_ids) != 1:
        raise HTTPException(status_code=400, detail="All kit items must belong to the same kit")
    kit_id = kit_ids.pop()

    try:
        rows = add_kit_products(
            db, kit_id, [KitProductIn(product_id=i.product_id, quantity=i.quantity) for i in payload]
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidKitError as e:
        raise HTTPException(status_code=400, detail=str(e))

    write_log(db, user_id=current_user.id, action="KIT_PRODUCTS_CREATE", resource="kit_products",
              meta={"kit_id": kit_id, "count": len(rows)})
    return rows


@router.delete("")
def delete_kit_products(
    kit_id: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deleted = db.query(KitProduct).filter(KitProduct.kit_id == kit_id).delete(synchronize_session=False)
    db.commit()
    write_log(db, user_id=current_user.id, action="KIT_PRODUCTS_DELETE", resource="kit_products",
              meta={"kit_id": kit_id, "count": deleted})
    return {"deleted": deleted}
