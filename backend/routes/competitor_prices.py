# backend/routes/competitor_prices.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from models.product import CompetitorPrice
from models.users import User
from schemas.product import CompetitorPriceCreate, CompetitorPriceOut, CompetitorPriceIn
from utils.audit import write_log
from utils.errors import NotFoundError
from utils.inventory import add_competitor_prices
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/competitor-prices", tags=["Competitor prices"])


@router.get("", response_model=List[CompetitorPriceOut])
def list_competitor_prices(
    product_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(CompetitorPrice)
    if product_id:
        query = query.filter(CompetitorPrice.product_id == product_id)
    return query.order_by(CompetitorPrice.product_id, CompetitorPrice.position).all()


# Bulk insert; rows may belong to one product only
@router.post("", response_model=List[CompetitorPriceOut], status_code=201)
def create_competitor_prices(
    payload: List[CompetitorPriceCreate],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload:
        return []
    product_ids = {item.product_id for item in payload}
    if len(product_ids) != 1:
        raise HTTPException(status_code=400, detail="All competitor prices must belong to the same product")
    product_id = product_ids.pop()

    try:
        rows = add_competitor_prices(
            db, product_id,
            [CompetitorPriceIn(competitor_name=i.competitor_name, price=i.price) for i in payload],
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    write_log(db, user_id=current_user.id, action="COMPETITOR_PRICES_CREATE", resource="competitor_prices",
              meta={"product_id": product_id, "count": len(rows)})
    return rows


@router.delete("")
def delete_competitor_prices(
    product_id: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deleted = (
        db.query(CompetitorPrice)
        .filter(CompetitorPrice.product_id == product_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    write_log(db, user_id=current_user.id, action="COMPETITOR_PRICES_DELETE", resource="competitor_prices",
              meta={"product_id": product_id, "count": deleted})
    return {"deleted": deleted}
