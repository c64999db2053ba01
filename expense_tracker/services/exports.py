"""CSV rendering for the export endpoints."""
import csv
import io
from datetime import date
from typing import Iterable

from fastapi.responses import Response

from expense_tracker.models.audit import AuditLog
from expense_tracker.models.domain import Expense

EXPENSE_HEADERS = [
    "ID", "Amount", "Category", "Date", "Notes", "Status",
    "Employee Name", "Employee Email", "Created At",
]
AUDIT_HEADERS = ["ID", "Action", "Description", "Timestamp", "User Name", "User Email"]


def expenses_to_csv(expenses: Iterable[Expense]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPENSE_HEADERS)
    for e in expenses:
        writer.writerow([
            e.id,
            f"{e.amount:.2f}",
            e.category.value,
            e.date.isoformat(),
            e.notes or "",
            e.status.value,
            e.user.name,
            e.user.email,
            e.created_at.date().isoformat(),
        ])
    return buffer.getvalue()


def audit_logs_to_csv(logs: Iterable[AuditLog]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(AUDIT_HEADERS)
    for log in logs:
        writer.writerow([
            log.id,
            log.action,
            log.description,
            log.timestamp.isoformat(sep=" ", timespec="seconds"),
            log.user.name,
            log.user.email,
        ])
    return buffer.getvalue()


def csv_attachment(content: str, prefix: str) -> Response:
    """Wrap CSV text as a download named <prefix>-YYYY-MM-DD.csv."""
    filename = f"{prefix}-{date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
