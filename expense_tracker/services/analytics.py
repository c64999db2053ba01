"""
Read-only aggregations over expenses.

Every query starts from scope_expenses(), so an employee's numbers only ever
include their own expenses. Nothing here writes.
"""
from collections import OrderedDict
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from expense_tracker.models.domain import Expense, User
from expense_tracker.models.enums import ExpenseStatus
from expense_tracker.services.policy import scope_expenses


def _month_buckets(start: date, end: date) -> "OrderedDict[str, Dict[str, Any]]":
    """One empty bucket per calendar month from start to end, inclusive."""
    buckets = OrderedDict()
    current = start.replace(day=1)
    while current <= end:
        buckets[current.strftime("%Y-%m")] = {
            "month": current.strftime("%B %Y"),
            "total": 0.0,
            "count": 0,
            "categories": {},
        }
        current += relativedelta(months=1)
    return buckets


class ExpenseAnalytics:
    """Aggregates for one caller."""

    def __init__(self, db: Session, caller: User):
        self.db = db
        self.caller = caller

    def _scoped(self, *columns, start: Optional[date] = None, end: Optional[date] = None) -> Query:
        """A query over expenses, row-filtered for the caller and limited to the date range."""
        query = scope_expenses(self.db.query(*columns).select_from(Expense), self.caller)
        if start:
            query = query.filter(Expense.date >= start)
        if end:
            query = query.filter(Expense.date <= end)
        return query

    def category_breakdown(self, start: Optional[date] = None, end: Optional[date] = None) -> List[Dict[str, Any]]:
        rows = (
            self._scoped(Expense.category, func.sum(Expense.amount), func.count(Expense.id), start=start, end=end)
            .group_by(Expense.category)
            .order_by(func.sum(Expense.amount).desc())
            .all()
        )
        return [
            {"category": category.value, "totalAmount": float(total or 0), "count": count}
            for category, total, count in rows
        ]

    def monthly_trends(self, start: date, end: date) -> List[Dict[str, Any]]:
        buckets = _month_buckets(start, end)
        for expense in self._scoped(Expense, start=start, end=end).order_by(Expense.date.asc()):
            bucket = buckets.get(expense.date.strftime("%Y-%m"))
            if bucket is None:
                continue
            amount = float(expense.amount)
            bucket["total"] += amount
            bucket["count"] += 1
            category = expense.category.value
            bucket["categories"][category] = bucket["categories"].get(category, 0.0) + amount
        return list(buckets.values())

    def top_spenders(self, limit: int = 5, start: Optional[date] = None, end: Optional[date] = None) -> List[Dict[str, Any]]:
        rows = (
            self._scoped(
                User.id, User.name, User.email, func.sum(Expense.amount), func.count(Expense.id),
                start=start, end=end,
            )
            .join(User, Expense.user_id == User.id)
            .group_by(User.id, User.name, User.email)
            .order_by(func.sum(Expense.amount).desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "user": {"id": user_id, "name": name, "email": email},
                "totalAmount": float(total or 0),
                "expenseCount": count,
            }
            for user_id, name, email, total, count in rows
        ]

    def summary(self, days: int = 30, today: Optional[date] = None) -> Dict[str, Any]:
        """Dashboard numbers over the last `days` days."""
        end = today or date.today()
        start = end - timedelta(days=days)
        counts = dict(
            self._scoped(Expense.status, func.count(Expense.id), start=start, end=end)
            .group_by(Expense.status)
            .all()
        )
        total_amount, average_amount = (
            self._scoped(func.sum(Expense.amount), func.avg(Expense.amount), start=start, end=end).one()
        )

        total = sum(counts.values())
        approved = counts.get(ExpenseStatus.APPROVED, 0)
        return {
            "summary": {
                "totalExpenses": total,
                "pendingExpenses": counts.get(ExpenseStatus.PENDING, 0),
                "approvedExpenses": approved,
                "rejectedExpenses": counts.get(ExpenseStatus.REJECTED, 0),
                "totalAmount": float(total_amount or 0),
                "averageAmount": float(average_amount or 0),
                "approvalRate": approved / total if total else 0,
            },
            "categoryBreakdown": self.category_breakdown(start, end),
            "monthlyTrends": self.monthly_trends(start, end),
            "topSpenders": self.top_spenders(5, start, end),
        }

    def categories(self, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, Any]:
        data = self.category_breakdown(start, end)
        return {"data": data, "total": sum(item["totalAmount"] for item in data)}

    def trends(self, months: int = 6, today: Optional[date] = None) -> Dict[str, Any]:
        end = today or date.today()
        start = end - relativedelta(months=months)
        data = self.monthly_trends(start, end)
        total_amount = sum(item["total"] for item in data)
        return {
            "data": data,
            "summary": {
                "totalAmount": total_amount,
                "totalCount": sum(item["count"] for item in data),
                "averagePerMonth": total_amount / len(data) if data else 0,
            },
        }
