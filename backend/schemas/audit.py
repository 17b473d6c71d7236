# backend/schemas/audit.py
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ts: Optional[datetime] = None
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    meta: Optional[Any] = None


class AuditLogPage(BaseModel):
    items: List[AuditLogOut]
    total: int
    page: int
    page_size: int
