"""Audit log endpoints. Admin only; mounted at both /api/audit and /api/logs."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from expense_tracker.api.deps import audit_filters, parse_model, require_admin
from expense_tracker.api.schemas import AuditFilters, AuditListResponse, RecentActivityResponse
from expense_tracker.database import get_db
from expense_tracker.models.domain import User
from expense_tracker.models.enums import AuditAction
from expense_tracker.services.audit_log import AuditLogWriter
from expense_tracker.services.exports import audit_logs_to_csv, csv_attachment
from expense_tracker.services.policy import Action, authorize

router = APIRouter()


@router.get("", response_model=AuditListResponse)
def list_audit_logs(
    caller: User = Depends(require_admin),
    filters: AuditFilters = Depends(audit_filters),
    db: Session = Depends(get_db),
):
    """Most recent first, filtered by action, actor and time range."""
    authorize(caller, Action.AUDIT_VIEW)
    logs, pagination = AuditLogWriter(db).query(
        filters.page,
        filters.limit,
        action=filters.action,
        user_id=filters.user_id,
        start=filters.start_date,
        end=filters.end_date,
    )
    return {"logs": logs, "pagination": pagination}


@router.get("/stats")
def audit_stats(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    caller: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    authorize(caller, Action.AUDIT_VIEW)
    period = parse_model(AuditFilters, startDate=start_date, endDate=end_date)
    return {"stats": AuditLogWriter(db).stats(period.start_date, period.end_date)}


@router.get("/recent", response_model=RecentActivityResponse)
def recent_activity(caller: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Activity from the last 24 hours."""
    authorize(caller, Action.AUDIT_VIEW)
    return {"recent_logs": AuditLogWriter(db).recent()}


@router.get("/export")
def export_audit_logs(
    caller: User = Depends(require_admin),
    filters: AuditFilters = Depends(audit_filters),
    db: Session = Depends(get_db),
):
    """Download matching entries as CSV. The export itself is audited."""
    authorize(caller, Action.AUDIT_VIEW)
    writer = AuditLogWriter(db)
    logs = writer.all_matching(
        action=filters.action,
        user_id=filters.user_id,
        start=filters.start_date,
        end=filters.end_date,
    )
    content = audit_logs_to_csv(logs)
    writer.record_and_commit(AuditAction.AUDIT_EXPORT, f"Exported {len(logs)} audit logs to CSV", caller.id)
    return csv_attachment(content, "audit-logs")
