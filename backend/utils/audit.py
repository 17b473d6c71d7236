# backend/utils/audit.py
import logging

from sqlalchemy.orm import Session
from models.audit_log import AuditLog

logger = logging.getLogger(__name__)

def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", meta=None):
    entry = AuditLog(user_id=user_id, action=action, resource=resource, status=status, meta=meta or {})
    db.add(entry)
    db.commit()
    logger.info("%s %s %s %s", action, resource, status, meta or "")
