"""Tests for the session gate and the auth pages."""

from datetime import timedelta

import pytest

from budgetbook.auth_gate import GateDecision, route_decision
from budgetbook.config import settings
from budgetbook.database import utcnow
from budgetbook.models.category import Category
from budgetbook.models.user import User, UserSession
from budgetbook.seed import default_categories

COOKIE = settings.session_cookie_name


def cleared_cookies(response):
    """Names of the cookies the response expires."""
    names = set()
    for header in response.headers.get_list("set-cookie"):
        name, _, rest = header.partition("=")
        if "max-age=0" in rest.lower() or "expires=thu, 01 jan 1970" in rest.lower():
            names.add(name)
    return names


class TestRouteDecision:
    """Routing policy without a running app."""

    @pytest.mark.parametrize("path, method, authenticated, expected", [
        ("/api/transactions/filtered", "GET", False, GateDecision.unauthorized),
        ("/api/transactions/filtered", "GET", True, GateDecision.allow),
        ("/", "GET", False, GateDecision.redirect_to_auth),
        ("/transactions", "GET", False, GateDecision.redirect_to_auth),
        ("/", "GET", True, GateDecision.allow),
        ("/auth", "GET", False, GateDecision.allow),
        ("/auth", "POST", False, GateDecision.allow),
        ("/auth", "GET", True, GateDecision.redirect_home),
        ("/auth/confirm", "GET", True, GateDecision.allow),
        ("/auth/confirm", "GET", False, GateDecision.allow),
        ("/auth/signout", "POST", True, GateDecision.signout),
        ("/auth/signout", "POST", False, GateDecision.signout),
        ("/api/health", "GET", False, GateDecision.allow),
        ("/authors", "GET", False, GateDecision.redirect_to_auth),
    ])
    def test_policy(self, path, method, authenticated, expected):
        assert route_decision(path, method, authenticated) == expected


class TestGate:

    def test_anonymous_api_request_is_unauthorized(self, client):
        response = client.get("/api/transactions/filtered")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    def test_anonymous_page_request_redirects(self, client):
        response = client.get("/", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/auth"

    def test_health_is_public(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_authenticated_request(self, auth_client):
        response = auth_client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_authenticated_auth_page_redirects_home(self, auth_client):
        response = auth_client.get("/auth", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"

    def test_confirm_page_is_reachable_when_authenticated(self, auth_client):
        response = auth_client.get("/auth/confirm", params={"next": "/transactions"}, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/transactions"

    def test_confirm_rejects_offsite_targets(self, client):
        response = client.get("/auth/confirm", params={"next": "//evil.example"}, follow_redirects=False)
        assert response.headers["location"] == "/"

    def test_forged_token_is_anonymous(self, client, user_session):
        client.cookies.set(COOKIE, "not-a-real-token")
        response = client.get("/api/categories")
        assert response.status_code == 401
        assert COOKIE in cleared_cookies(response)

    def test_expired_session_is_anonymous(self, client, db_session, user):
        db_session.add(UserSession(
            token="expired-token",
            user_id=user.id,
            expires_at=utcnow() - timedelta(minutes=1),
        ))
        db_session.commit()
        client.cookies.set(COOKIE, "expired-token")

        response = client.get("/api/categories")
        assert response.status_code == 401
        assert db_session.query(UserSession).filter_by(token="expired-token").count() == 0


class TestAuthFlows:

    def test_auth_page(self, client):
        response = client.get("/auth")
        assert response.status_code == 200
        assert "<form" in response.text

    def test_signup_seeds_default_categories(self, client, db_session):
        response = client.post("/auth", data={
            "action": "signup", "email": "New@Example.com", "password": "long enough",
        })
        assert response.status_code == 201
        assert response.json()["success"] is True

        user = db_session.query(User).filter_by(email="new@example.com").one()
        names = {c.name for c in db_session.query(Category).filter_by(user_id=user.id)}
        assert names == set(default_categories())
        assert settings.transfers_category_name in names

    def test_signup_twice(self, client, user):
        response = client.post("/auth", data={
            "action": "signup", "email": user.email, "password": "long enough",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "User already registered"

    def test_signup_short_password(self, client):
        response = client.post("/auth", data={
            "action": "signup", "email": "a@example.com", "password": "short",
        })
        assert response.status_code == 400

    def test_login_sets_cookie(self, client, user):
        response = client.post("/auth", data={
            "action": "login", "email": user.email, "password": "correct horse battery",
        }, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"
        set_cookie = response.headers["set-cookie"].lower()
        assert set_cookie.startswith(COOKIE)
        assert "httponly" in set_cookie
        assert "samesite=lax" in set_cookie

        assert client.get("/api/categories").status_code == 200

    def test_login_with_wrong_password(self, client, user):
        response = client.post("/auth", data={
            "action": "login", "email": user.email, "password": "wrong password",
        }, follow_redirects=False)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid login credentials"

    def test_signout_clears_every_session_cookie(self, auth_client, db_session, user_session):
        auth_client.cookies.set(f"{settings.session_cookie_prefix}refresh-token", "abc")
        token = user_session.token

        response = auth_client.post("/auth/signout", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/auth"
        assert cleared_cookies(response) >= {COOKIE, f"{settings.session_cookie_prefix}refresh-token"}
        assert db_session.query(UserSession).filter_by(token=token).count() == 0

        auth_client.cookies.clear()
        auth_client.cookies.set(COOKIE, token)
        assert auth_client.get("/api/categories").status_code == 401

    def test_signout_without_session(self, client):
        response = client.post("/auth/signout", follow_redirects=False)
        assert response.status_code == 303
        assert COOKIE in cleared_cookies(response)
