# backend/routes/product_types.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from models.product_type import ProductType
from models.users import User
from schemas.product_type import ProductTypeIn, ProductTypeOut
from utils.audit import write_log
from utils.inventory import create_product_type
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/product-types", tags=["Product types"])


def _get_or_404(db: Session, type_id: str) -> ProductType:
    product_type = db.query(ProductType).filter(ProductType.id == type_id).first()
    if not product_type:
        raise HTTPException(status_code=404, detail="Product type not found")
    return product_type


@router.get("", response_model=List[ProductTypeOut])
def list_product_types(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(ProductType).order_by(ProductType.created_at.desc()).all()


@router.post("", response_model=ProductTypeOut, status_code=201)
def add_product_type(
    payload: ProductTypeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product_type = create_product_type(db, payload.name)
    write_log(db, user_id=current_user.id, action="PRODUCT_TYPE_CREATE", resource="product_types",
              meta={"id": product_type.id, "name": product_type.name})
    return product_type


@router.get("/{type_id}", response_model=ProductTypeOut)
def get_product_type(
    type_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_or_404(db, type_id)


@router.put("/{type_id}", response_model=ProductTypeOut)
def update_product_type(
    type_id: str,
    payload: ProductTypeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product_type = _get_or_404(db, type_id)
    product_type.name = payload.name.strip()
    db.commit()
    db.refresh(product_type)
    write_log(db, user_id=current_user.id, action="PRODUCT_TYPE_UPDATE", resource="product_types",
              meta={"id": product_type.id})
    return product_type


# Products keep their type_id; it simply stops resolving to a name
@router.delete("/{type_id}")
def delete_product_type(
    type_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product_type = _get_or_404(db, type_id)
    name = product_type.name
    db.delete(product_type)
    db.commit()
    write_log(db, user_id=current_user.id, action="PRODUCT_TYPE_DELETE", resource="product_types",
              meta={"id": type_id})
    return {"detail": f"Product type '{name}' deleted"}
