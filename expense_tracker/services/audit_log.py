"""
Audit log writer and queries.

record() only adds the entry to the caller's session. The service that made
the mutation commits both together, so a mutation never lands without its
audit entry and an audit failure rolls the mutation back.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from expense_tracker.models.audit import AuditLog
from expense_tracker.models.domain import User
from expense_tracker.models.enums import AuditAction
from expense_tracker.services.pagination import paginate

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(hours=24)
RECENT_LIMIT = 50


class AuditLogWriter:
    """Appends and reads audit entries. There is intentionally no update or delete."""

    def __init__(self, db: Session):
        self.db = db

    def record(self, action: AuditAction, description: str, user_id: str) -> AuditLog:
        """Add an entry to the current transaction; the caller commits."""
        entry = AuditLog(
            action=action.value,
            description=description,
            user_id=user_id,
            timestamp=datetime.utcnow(),
        )
        self.db.add(entry)
        logger.debug("Audit %s by %s: %s", action.value, user_id, description)
        return entry

    def record_and_commit(self, action: AuditAction, description: str, user_id: str) -> AuditLog:
        """For actions with no other write (login, logout, exports)."""
        entry = self.record(action, description, user_id)
        self.db.commit()
        return entry

    def _filtered(
        self,
        action: Optional[AuditAction] = None,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Query:
        query = self.db.query(AuditLog).options(joinedload(AuditLog.user))
        if action:
            query = query.filter(AuditLog.action == action.value)
        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if start:
            query = query.filter(AuditLog.timestamp >= start)
        if end:
            query = query.filter(AuditLog.timestamp <= end)
        return query.order_by(AuditLog.timestamp.desc())

    def query(
        self,
        page: int,
        limit: int,
        action: Optional[AuditAction] = None,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[List[AuditLog], Dict[str, int]]:
        """Filtered entries, most recent first, one page at a time."""
        return paginate(self._filtered(action, user_id, start, end), page, limit)

    def all_matching(self, **filters) -> List[AuditLog]:
        return self._filtered(**filters).all()

    def stats(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
        """Total count with breakdowns by action and by acting user."""
        conditions = []
        if start:
            conditions.append(AuditLog.timestamp >= start)
        if end:
            conditions.append(AuditLog.timestamp <= end)

        total = self.db.query(func.count(AuditLog.id)).filter(*conditions).scalar()

        by_action = (
            self.db.query(AuditLog.action, func.count(AuditLog.id))
            .filter(*conditions)
            .group_by(AuditLog.action)
            .order_by(func.count(AuditLog.id).desc())
            .all()
        )
        by_user = (
            self.db.query(User.id, User.name, User.email, func.count(AuditLog.id))
            .join(AuditLog, AuditLog.user_id == User.id)
            .filter(*conditions)
            .group_by(User.id, User.name, User.email)
            .order_by(func.count(AuditLog.id).desc())
            .all()
        )

        return {
            "totalLogs": total,
            "actionBreakdown": [{"action": action, "count": count} for action, count in by_action],
            "userBreakdown": [
                {"user": {"id": uid, "name": name, "email": email}, "count": count}
                for uid, name, email, count in by_user
            ],
        }

    def recent(self) -> List[AuditLog]:
        """Entries from the last 24 hours, capped at 50."""
        since = datetime.utcnow() - RECENT_WINDOW
        return self._filtered(start=since).limit(RECENT_LIMIT).all()
