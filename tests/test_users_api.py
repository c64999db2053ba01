"""Tests for user administration."""
import pytest

from expense_tracker.models.audit import AuditLog
from expense_tracker.models.domain import Expense, User
from expense_tracker.models.enums import AuditAction, Role


NEW_USER = {"email": "new@example.com", "password": "secret1", "name": "New Person"}


def _audit_entries(db_session, action):
    db_session.expire_all()
    return db_session.query(AuditLog).filter(AuditLog.action == action.value).all()


class TestAccess:

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/users"),
        ("post", "/api/users"),
        ("get", "/api/users/someone"),
        ("put", "/api/users/someone"),
        ("delete", "/api/users/someone"),
    ])
    def test_employees_are_forbidden(self, client, employee, auth_headers, method, path):
        kwargs = {"json": NEW_USER} if method in ("post", "put") else {}
        response = getattr(client, method)(path, headers=auth_headers(employee), **kwargs)

        assert response.status_code == 403


class TestCrud:

    def test_create(self, client, db_session, admin, auth_headers):
        response = client.post("/api/users", json=NEW_USER, headers=auth_headers(admin))

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["email"] == "new@example.com"
        assert user["role"] == "EMPLOYEE"
        assert user["expenseCount"] == 0
        assert "password" not in user and "passwordHash" not in user

        entries = _audit_entries(db_session, AuditAction.USER_CREATED)
        assert len(entries) == 1
        assert entries[0].user_id == admin.id

    def test_created_user_can_log_in(self, client, admin, auth_headers):
        client.post("/api/users", json={**NEW_USER, "role": "ADMIN"}, headers=auth_headers(admin))

        response = client.post("/api/auth/login", json={"email": NEW_USER["email"], "password": "secret1"})

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "ADMIN"

    def test_duplicate_email(self, client, admin, employee, auth_headers):
        response = client.post(
            "/api/users", json={**NEW_USER, "email": employee.email}, headers=auth_headers(admin)
        )

        assert response.status_code == 409

    def test_create_validation(self, client, admin, auth_headers):
        response = client.post(
            "/api/users",
            json={"email": "bad", "password": "123", "name": "", "role": "OWNER"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert {d["field"] for d in response.json()["details"]} == {"email", "password", "name", "role"}

    def test_list_and_search(self, client, admin, employee, other_employee, make_expense, auth_headers):
        make_expense(employee)

        body = client.get("/api/users", headers=auth_headers(admin)).json()
        assert body["pagination"]["total"] == 3
        counts = {u["email"]: u["expenseCount"] for u in body["users"]}
        assert counts[employee.email] == 1

        body = client.get("/api/users", params={"search": "JANE"}, headers=auth_headers(admin)).json()
        assert [u["email"] for u in body["users"]] == [other_employee.email]

    def test_get(self, client, admin, employee, auth_headers):
        response = client.get(f"/api/users/{employee.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "John Employee"
        assert client.get("/api/users/missing", headers=auth_headers(admin)).status_code == 404

    def test_partial_update(self, client, db_session, admin, employee, auth_headers):
        response = client.put(
            f"/api/users/{employee.id}", json={"role": "ADMIN"}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["role"] == "ADMIN"
        assert user["email"] == employee.email
        assert len(_audit_entries(db_session, AuditAction.USER_UPDATED)) == 1

    def test_update_password(self, client, admin, employee, auth_headers):
        client.put(f"/api/users/{employee.id}", json={"password": "changed1"}, headers=auth_headers(admin))

        old = client.post("/api/auth/login", json={"email": employee.email, "password": "password123"})
        new = client.post("/api/auth/login", json={"email": employee.email, "password": "changed1"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_update_to_taken_email(self, client, admin, employee, other_employee, auth_headers):
        response = client.put(
            f"/api/users/{employee.id}", json={"email": other_employee.email}, headers=auth_headers(admin)
        )

        assert response.status_code == 409


class TestDelete:

    def test_delete_cascades(self, client, db_session, admin, employee, make_expense, auth_headers):
        make_expense(employee)
        client.post("/api/auth/login", json={"email": employee.email, "password": "password123"})
        employee_id, employee_email = employee.id, employee.email

        response = client.delete(f"/api/users/{employee_id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}
        db_session.expire_all()
        assert db_session.get(User, employee_id) is None
        assert db_session.query(Expense).filter(Expense.user_id == employee_id).count() == 0
        assert db_session.query(AuditLog).filter(AuditLog.user_id == employee_id).count() == 0

        entries = db_session.query(AuditLog).filter(AuditLog.action == "USER_DELETED").all()
        assert len(entries) == 1
        assert entries[0].user_id == admin.id
        assert employee_email in entries[0].description

    def test_admin_cannot_delete_self(self, client, db_session, admin, auth_headers):
        response = client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 403
        assert response.json()["error"] == "Cannot delete yourself"
        db_session.expire_all()
        assert db_session.get(User, admin.id) is not None
        assert db_session.query(AuditLog).count() == 0

    def test_admin_can_delete_another_admin(self, client, admin, make_user, auth_headers):
        other_admin = make_user("boss@example.com", Role.ADMIN)

        assert client.delete(f"/api/users/{other_admin.id}", headers=auth_headers(admin)).status_code == 200

    def test_delete_missing(self, client, admin, auth_headers):
        assert client.delete("/api/users/missing", headers=auth_headers(admin)).status_code == 404
