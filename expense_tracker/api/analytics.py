"""Analytics endpoints. Only /summary is open to employees, and it is scoped to their own expenses."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from expense_tracker.api.deps import get_current_user, parse_model, require_admin
from expense_tracker.api.schemas import ExpenseFilters
from expense_tracker.database import get_db
from expense_tracker.models.domain import User
from expense_tracker.services.analytics import ExpenseAnalytics
from expense_tracker.services.policy import Action, authorize

router = APIRouter()


def date_range(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
) -> ExpenseFilters:
    return parse_model(ExpenseFilters, startDate=start_date, endDate=end_date)


@router.get("/summary")
def summary(
    days: int = Query(30, ge=1, le=3650),
    caller: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ExpenseAnalytics(db, caller).summary(days)


@router.get("/categories")
def categories(
    period: ExpenseFilters = Depends(date_range),
    caller: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Totals per category, for the bar chart."""
    authorize(caller, Action.ANALYTICS_VIEW_ALL)
    return ExpenseAnalytics(db, caller).categories(period.start_date, period.end_date)


@router.get("/trends")
def trends(
    months: int = Query(6, ge=1, le=120),
    caller: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Monthly totals, for the line chart."""
    authorize(caller, Action.ANALYTICS_VIEW_ALL)
    return ExpenseAnalytics(db, caller).trends(months)


@router.get("/top-spenders")
def top_spenders(
    limit: int = Query(5, ge=1, le=100),
    period: ExpenseFilters = Depends(date_range),
    caller: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    authorize(caller, Action.ANALYTICS_VIEW_ALL)
    return {"topSpenders": ExpenseAnalytics(db, caller).top_spenders(limit, period.start_date, period.end_date)}
