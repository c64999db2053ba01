"""Tests for the analytics aggregations and their access rules."""
from datetime import date, timedelta

import pytest

from expense_tracker.models.enums import ExpenseCategory, ExpenseStatus
from expense_tracker.services import analytics
from expense_tracker.services.analytics import ExpenseAnalytics, _month_buckets
from expense_tracker.services.policy import scope_expenses


@pytest.fixture
def spending(employee, other_employee, make_expense):
    today = date.today()
    make_expense(employee, "100.00", ExpenseCategory.TRAVEL, today, ExpenseStatus.APPROVED)
    make_expense(employee, "50.00", ExpenseCategory.FOOD, today, ExpenseStatus.PENDING)
    make_expense(other_employee, "300.00", ExpenseCategory.TRAVEL, today, ExpenseStatus.REJECTED)
    # Outside the default 30 day window
    make_expense(other_employee, "999.00", ExpenseCategory.SOFTWARE, today - timedelta(days=400))


class TestSummary:

    def test_admin_summary_covers_everyone(self, db_session, admin, spending):
        result = ExpenseAnalytics(db_session, admin).summary()

        summary = result["summary"]
        assert summary["totalExpenses"] == 3
        assert summary["approvedExpenses"] == 1
        assert summary["pendingExpenses"] == 1
        assert summary["rejectedExpenses"] == 1
        assert summary["totalAmount"] == 450.0
        assert summary["averageAmount"] == 150.0
        assert summary["approvalRate"] == pytest.approx(1 / 3)
        assert len(result["topSpenders"]) == 2
        assert result["topSpenders"][0]["totalAmount"] == 300.0

    def test_employee_summary_is_scoped(self, db_session, employee, spending):
        result = ExpenseAnalytics(db_session, employee).summary()

        assert result["summary"]["totalExpenses"] == 2
        assert result["summary"]["totalAmount"] == 150.0
        assert [s["user"]["id"] for s in result["topSpenders"]] == [employee.id]
        categories = {c["category"]: c["totalAmount"] for c in result["categoryBreakdown"]}
        assert categories == {"TRAVEL": 100.0, "FOOD": 50.0}

    def test_empty(self, db_session, employee):
        summary = ExpenseAnalytics(db_session, employee).summary()["summary"]

        assert summary["totalExpenses"] == 0
        assert summary["averageAmount"] == 0
        assert summary["approvalRate"] == 0


class TestScoping:

    def test_every_aggregate_is_row_filtered(self, monkeypatch, db_session, employee, spending):
        scoped_for = []

        def recording_scope(query, caller):
            scoped_for.append(caller.id)
            return scope_expenses(query, caller)

        monkeypatch.setattr(analytics, "scope_expenses", recording_scope)

        ExpenseAnalytics(db_session, employee).summary()

        # status counts, totals, category breakdown, monthly trend, top spenders
        assert scoped_for == [employee.id] * 5

    def test_employee_top_spenders_only_lists_themselves(self, db_session, employee, spending):
        spenders = ExpenseAnalytics(db_session, employee).top_spenders(limit=10)

        assert [s["user"]["id"] for s in spenders] == [employee.id]
        assert spenders[0]["totalAmount"] == 150.0


class TestBreakdowns:

    def test_categories(self, db_session, admin, spending):
        result = ExpenseAnalytics(db_session, admin).categories()

        assert result["total"] == 1449.0
        assert result["data"][0] == {"category": "SOFTWARE", "totalAmount": 999.0, "count": 1}

    def test_categories_date_range(self, db_session, admin, spending):
        result = ExpenseAnalytics(db_session, admin).categories(start=date.today() - timedelta(days=1))

        assert {c["category"] for c in result["data"]} == {"TRAVEL", "FOOD"}

    def test_trends_has_a_bucket_per_month(self, db_session, admin, spending):
        result = ExpenseAnalytics(db_session, admin).trends(months=6)

        assert len(result["data"]) == 7
        current = result["data"][-1]
        assert current["month"] == date.today().strftime("%B %Y")
        assert current["total"] == 450.0
        assert current["count"] == 3
        assert current["categories"] == {"TRAVEL": 400.0, "FOOD": 50.0}
        assert result["summary"]["totalAmount"] == 450.0
        assert result["summary"]["averagePerMonth"] == pytest.approx(450.0 / 7)

    def test_month_buckets_cross_year_end(self):
        buckets = _month_buckets(date(2023, 11, 20), date(2024, 2, 3))

        assert list(buckets) == ["2023-11", "2023-12", "2024-01", "2024-02"]
        assert buckets["2024-01"]["month"] == "January 2024"

    def test_top_spenders_limit(self, db_session, admin, employee, other_employee, spending):
        spenders = ExpenseAnalytics(db_session, admin).top_spenders(limit=1)

        assert len(spenders) == 1
        assert spenders[0]["user"]["id"] == other_employee.id
        assert spenders[0]["expenseCount"] == 2


class TestEndpoints:

    @pytest.mark.parametrize("path", [
        "/api/analytics/categories",
        "/api/analytics/trends",
        "/api/analytics/top-spenders",
    ])
    def test_admin_only(self, client, admin, employee, auth_headers, path):
        assert client.get(path, headers=auth_headers(employee)).status_code == 403
        assert client.get(path, headers=auth_headers(admin)).status_code == 200

    def test_summary_open_to_employees_but_scoped(self, client, employee, spending, auth_headers):
        response = client.get("/api/analytics/summary", params={"days": 7}, headers=auth_headers(employee))

        assert response.status_code == 200
        assert response.json()["summary"]["totalExpenses"] == 2

    def test_top_spenders_endpoint(self, client, admin, other_employee, spending, auth_headers):
        body = client.get(
            "/api/analytics/top-spenders", params={"limit": 1}, headers=auth_headers(admin)
        ).json()

        assert body["topSpenders"][0]["user"]["email"] == other_employee.email
