"""
Audit log model.

Entries are append-only: nothing in the service exposes an update or delete.
The only removal path is the cascade when the acting user is deleted.
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from expense_tracker.database import Base


class AuditLog(Base):
    """
    Immutable record of an action taken by a user.

    Invariants:
    - Once written, never edited
    - Timestamp is assigned by the server
    - Every state-changing API call writes exactly one entry
    """
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String(64), nullable=False, index=True)  # AuditAction value
    description = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="audit_logs")
