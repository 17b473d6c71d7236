# backend/routes/logs.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.audit_log import AuditLog
from models.users import User
from schemas.audit import AuditLogPage
from utils.tokenJWT import role_required

router = APIRouter(prefix="/logs", tags=["Audit log"])


@router.get("", response_model=AuditLogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Filter by action"),
    resource: Optional[str] = Query(None, description="Filter by collection"),
    status: Optional[str] = Query(None, description="SUCCESS / FAIL"),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action.ilike(f"%{action}%"))
    if resource:
        query = query.filter(AuditLog.resource.ilike(f"%{resource}%"))
    if status:
        query = query.filter(AuditLog.status == status.upper())

    # Newest first; id breaks ties within the same second
    query = query.order_by(AuditLog.ts.desc(), AuditLog.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}
