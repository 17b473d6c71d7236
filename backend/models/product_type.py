# backend/models/product_type.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, func
from database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Product category. Deleting a type does not touch products that reference it.
class ProductType(Base):
    __tablename__ = "product_types"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)
