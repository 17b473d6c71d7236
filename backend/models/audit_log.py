# backend/models/audit_log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of inventory mutations (who changed which collection, and how it went)
class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)      # e.g. PRODUCT_CREATE, IMPORT_COMMIT
    resource = Column(String(50), index=True)    # collection name
    status = Column(String(20), index=True)      # SUCCESS / FAIL

    # Free-form context (ids, counts, error messages)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
