"""
Expense status workflow.

All expense writes MUST go through here so that the status rules and the
audit trail cannot be bypassed:

    PENDING -> APPROVED    admin only
    PENDING -> REJECTED    admin only, optional reason
    any     -> PENDING     whenever content is edited, by the owner or an admin

Each write and its audit entry are committed in one transaction. The UPDATE
carries the version that was read, so of two overlapping writes only the
first one lands; the second is refused with Conflict.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from expense_tracker.errors import Conflict, NotFound, ValidationError
from expense_tracker.models.domain import Expense, User
from expense_tracker.models.enums import AuditAction, ExpenseCategory, ExpenseStatus
from expense_tracker.services.audit_log import AuditLogWriter
from expense_tracker.services.pagination import paginate
from expense_tracker.services.policy import Action, authorize, scope_expenses

logger = logging.getLogger(__name__)

STALE_MESSAGE = "The expense was changed by someone else. Reload it and try again."


class ExpenseWorkflow:
    """Enforces who may change an expense and what every change does to its status."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditLogWriter(db)

    # Reads

    def _base_query(self, caller: User) -> Query:
        query = self.db.query(Expense).options(joinedload(Expense.user))
        return scope_expenses(query, caller)

    def _apply_filters(
        self,
        query: Query,
        category: Optional[ExpenseCategory] = None,
        status: Optional[ExpenseStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Query:
        if category:
            query = query.filter(Expense.category == category)
        if status:
            query = query.filter(Expense.status == status)
        if start:
            query = query.filter(Expense.date >= start)
        if end:
            query = query.filter(Expense.date <= end)
        return query

    def list(self, caller: User, page: int, limit: int, **filters) -> Tuple[List[Expense], dict]:
        """Newest first. Employees only ever get their own rows, whatever the filters."""
        query = self._apply_filters(self._base_query(caller), **filters)
        query = query.order_by(Expense.created_at.desc())
        return paginate(query, page, limit)

    def get(self, expense_id: str, caller: User, action: Action = Action.EXPENSE_VIEW) -> Expense:
        expense = (
            self.db.query(Expense)
            .options(joinedload(Expense.user))
            .filter(Expense.id == expense_id)
            .first()
        )
        if not expense:
            raise NotFound("The requested expense does not exist", error="Expense not found")
        authorize(caller, action, expense)
        return expense

    def for_export(self, caller: User, **filters) -> List[Expense]:
        authorize(caller, Action.EXPENSE_EXPORT)
        query = self._apply_filters(self._base_query(caller), **filters)
        return query.order_by(Expense.date.desc()).all()

    # Writes

    def _commit(self, expense: Expense) -> Expense:
        """Commit the pending change and its audit entry, or neither."""
        expense_id = expense.id
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.info("Concurrent write on expense %s refused", expense_id)
            raise Conflict(STALE_MESSAGE, error="Stale expense version")
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(expense)
        return expense

    def create(
        self,
        owner: User,
        amount: Decimal,
        category: ExpenseCategory,
        spent_on: date,
        notes: Optional[str] = None,
        receipt_url: Optional[str] = None,
    ) -> Expense:
        """New expenses always start Pending."""
        authorize(owner, Action.EXPENSE_CREATE)
        expense = Expense(
            amount=amount,
            category=category,
            date=spent_on,
            notes=notes,
            receipt_url=receipt_url,
            status=ExpenseStatus.PENDING,
            user_id=owner.id,
        )
        self.db.add(expense)
        self.db.flush()

        self.audit.record(
            AuditAction.EXPENSE_CREATED,
            f"Expense created - {amount} for {category.value}",
            owner.id,
        )
        return self._commit(expense)

    def update(
        self,
        expense: Expense,
        actor: User,
        amount: Decimal,
        category: ExpenseCategory,
        spent_on: date,
        notes: Optional[str] = None,
        receipt_url: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Expense:
        """
        Replace the content of an expense.

        Editing is never a passive update: any previous decision is discarded
        and the expense goes back to Pending for re-approval. When
        expected_version is given, it must match the stored one.
        """
        authorize(actor, Action.EXPENSE_EDIT, expense)

        if expected_version is not None and expected_version != expense.version:
            raise Conflict(STALE_MESSAGE, error="Stale expense version")

        previous_status = expense.status
        expense.amount = amount
        expense.category = category
        expense.date = spent_on
        expense.notes = notes
        if receipt_url:
            expense.receipt_url = receipt_url
        expense.status = ExpenseStatus.PENDING
        expense.rejection_reason = None
        expense.updated_at = datetime.utcnow()

        description = f"Expense {expense.id} updated - {amount} for {category.value}"
        if previous_status != ExpenseStatus.PENDING:
            description += f" (status reset from {previous_status.value} to PENDING)"
        self.audit.record(AuditAction.EXPENSE_UPDATED, description, actor.id)

        return self._commit(expense)

    def set_status(
        self,
        expense: Expense,
        actor: User,
        status: ExpenseStatus,
        reason: Optional[str] = None,
    ) -> Expense:
        """
        Approve or reject a Pending expense.

        Invariants:
        - Only admins decide
        - Only Pending expenses can be decided; edit a decided one to re-open it
        - rejection_reason is only ever set here, and only for a rejection
        """
        authorize(actor, Action.EXPENSE_DECIDE, expense)

        if status == ExpenseStatus.PENDING:
            raise ValidationError.for_field("status", "Status must be either APPROVED or REJECTED")

        if expense.status != ExpenseStatus.PENDING:
            raise Conflict(
                f"Expense has already been {expense.status.value.lower()}. "
                "It must be edited and re-submitted before a new decision.",
                error="Expense already decided",
            )

        expense.status = status
        expense.rejection_reason = reason if status == ExpenseStatus.REJECTED else None
        expense.updated_at = datetime.utcnow()

        description = f"Expense {expense.id} status changed to {status.value}"
        if status == ExpenseStatus.REJECTED and reason:
            description += f" - Reason: {reason}"
        self.audit.record(AuditAction.EXPENSE_STATUS_UPDATED, description, actor.id)

        self._commit(expense)
        logger.info("Expense %s %s by %s", expense.id, status.value, actor.id)
        return expense
