"""Expense endpoints. Listing and lookups are filtered to the caller's own rows for employees."""
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from expense_tracker.api.deps import (
    expense_filters,
    expense_form,
    get_current_user,
    get_receipt_storage,
    require_admin,
)
from expense_tracker.api.schemas import (
    ErrorResponse,
    ExpenseDetail,
    ExpenseEnvelope,
    ExpenseFilters,
    ExpenseForm,
    ExpenseListResponse,
    ExpenseStatusUpdate,
)
from expense_tracker.database import get_db
from expense_tracker.models.domain import User
from expense_tracker.models.enums import AuditAction
from expense_tracker.services.audit_log import AuditLogWriter
from expense_tracker.services.expense_workflow import ExpenseWorkflow
from expense_tracker.services.exports import csv_attachment, expenses_to_csv
from expense_tracker.services.policy import Action
from expense_tracker.services.receipts import ReceiptStorage

router = APIRouter()


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    caller: User = Depends(get_current_user),
    filters: ExpenseFilters = Depends(expense_filters),
    db: Session = Depends(get_db),
):
    """List expenses, newest first. Employees only see their own."""
    expenses, pagination = ExpenseWorkflow(db).list(caller, filters.page, filters.limit, **filters.criteria())
    return {"expenses": expenses, "pagination": pagination}


@router.post("", response_model=ExpenseEnvelope, status_code=status.HTTP_201_CREATED)
async def create_expense(
    caller: User = Depends(get_current_user),
    form: ExpenseForm = Depends(expense_form),
    receipt: Optional[UploadFile] = File(None),
    storage: ReceiptStorage = Depends(get_receipt_storage),
    db: Session = Depends(get_db),
):
    """Submit a new expense. It starts Pending."""
    receipt_url = await storage.save(receipt)
    try:
        expense = ExpenseWorkflow(db).create(caller, receipt_url=receipt_url, **form.content())
    except Exception:
        storage.discard(receipt_url)
        raise
    return {"message": "Expense created successfully", "expense": expense}


@router.get("/export")
def export_expenses(
    caller: User = Depends(require_admin),
    filters: ExpenseFilters = Depends(expense_filters),
    db: Session = Depends(get_db),
):
    """Download matching expenses as CSV. Pagination parameters are ignored."""
    expenses = ExpenseWorkflow(db).for_export(caller, **filters.criteria())
    content = expenses_to_csv(expenses)
    AuditLogWriter(db).record_and_commit(
        AuditAction.EXPENSE_EXPORT, f"Exported {len(expenses)} expenses to CSV", caller.id
    )
    return csv_attachment(content, "expenses")


@router.get("/{expense_id}", response_model=ExpenseDetail, responses={403: {"model": ErrorResponse}})
def get_expense(expense_id: str, caller: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"expense": ExpenseWorkflow(db).get(expense_id, caller)}


@router.put("/{expense_id}", response_model=ExpenseEnvelope, responses={
    403: {"model": ErrorResponse, "description": "Not the owner and not an admin"},
    409: {"model": ErrorResponse, "description": "Stale version"},
})
async def update_expense(
    expense_id: str,
    caller: User = Depends(get_current_user),
    form: ExpenseForm = Depends(expense_form),
    receipt: Optional[UploadFile] = File(None),
    storage: ReceiptStorage = Depends(get_receipt_storage),
    db: Session = Depends(get_db),
):
    """
    Edit an expense.

    Always sends it back to Pending, discarding any earlier approval or rejection.
    """
    workflow = ExpenseWorkflow(db)
    expense = workflow.get(expense_id, caller, Action.EXPENSE_EDIT)
    receipt_url = await storage.save(receipt)
    try:
        expense = workflow.update(
            expense, caller, receipt_url=receipt_url, expected_version=form.version, **form.content()
        )
    except Exception:
        storage.discard(receipt_url)
        raise
    return {"message": "Expense updated successfully", "expense": expense}


@router.put("/{expense_id}/status", response_model=ExpenseEnvelope, responses={
    403: {"model": ErrorResponse, "description": "Admin only"},
    409: {"model": ErrorResponse, "description": "Expense already decided"},
})
def update_expense_status(
    expense_id: str,
    decision: ExpenseStatusUpdate,
    caller: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending expense."""
    workflow = ExpenseWorkflow(db)
    expense = workflow.get(expense_id, caller)
    expense = workflow.set_status(expense, caller, decision.status, decision.reason)
    return {"message": "Expense status updated successfully", "expense": expense}
