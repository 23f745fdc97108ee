"""Tests for the navigation gate middleware (core.route_gate)."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from core.permissions import Role
from core.security import AUTH_COOKIE, create_access_token


def _get(client, path):
    return client.get(path, follow_redirects=False)


def _with_token(client, role, **kwargs):
    client.cookies.clear()
    client.cookies.set(AUTH_COOKIE, create_access_token("u-1", "u@x.com", role, **kwargs))


def _location(response):
    return urlparse(response.headers["location"])


class TestAnonymous:
    @pytest.mark.parametrize("path", ["/dashboard", "/admin/users", "/tickets/12", "/"])
    def test_protected_page_redirects_to_login_with_return_path(self, client, path):
        response = _get(client, path)
        assert response.status_code in (302, 307)
        location = _location(response)
        assert location.path == "/login"
        assert parse_qs(location.query)["redirect"] == [path]

    @pytest.mark.parametrize("path", ["/login", "/register", "/forgot-password"])
    def test_public_pages_are_open(self, client, path):
        response = _get(client, path)
        assert response.status_code not in (302, 307)

    def test_login_lookalike_is_not_public(self, client):
        response = _get(client, "/login-help")
        assert _location(response).path == "/login"

    @pytest.mark.parametrize("path", ["/admin/users.html", "/admin/users/index.html", "/dashboard.HTML"])
    def test_html_pages_are_gated(self, client, path):
        response = _get(client, path)
        assert response.status_code in (302, 307)
        assert _location(response).path == "/login"

    @pytest.mark.parametrize("path", ["/api/auth/me", "/health", "/logo.png", "/admin/app.js", "/openapi.json"])
    def test_api_and_assets_pass_through(self, client, path):
        response = _get(client, path)
        assert "location" not in response.headers

    def test_api_denial_is_an_error_not_a_redirect(self, client):
        response = _get(client, "/api/users")
        assert response.status_code == 401
        assert response.json()["success"] is False


class TestAuthenticated:
    def test_public_page_forwards_to_dashboard(self, client):
        _with_token(client, "agent")
        response = _get(client, "/login")
        assert _location(response).path == "/dashboard"

    @pytest.mark.parametrize("role", ["demandeur", "agent"])
    def test_under_privileged_role_goes_to_dashboard(self, client, role):
        _with_token(client, role)
        response = _get(client, "/admin/users")
        assert response.status_code in (302, 307)
        assert _location(response).path == "/dashboard"

    @pytest.mark.parametrize("role", ["manager", "admin"])
    def test_admin_pages_open_to_managers(self, client, role):
        _with_token(client, role)
        assert "location" not in _get(client, "/admin/users").headers

    def test_allowed_page_passes(self, client):
        _with_token(client, "demandeur")
        assert "location" not in _get(client, "/tickets/new").headers

    def test_html_page_respects_role(self, client):
        _with_token(client, "demandeur")
        assert _location(_get(client, "/admin/users.html")).path == "/dashboard"

    def test_admin_prefix_needs_separator(self, client):
        _with_token(client, "admin")
        response = _get(client, "/admin-other")
        assert _location(response).path == "/dashboard"

    def test_expired_token_counts_as_anonymous(self, client):
        _with_token(client, "admin", issued_at=datetime.now(timezone.utc) - timedelta(hours=1))
        response = _get(client, "/dashboard")
        assert _location(response).path == "/login"

    def test_expired_token_may_open_login(self, client):
        _with_token(client, "admin", issued_at=datetime.now(timezone.utc) - timedelta(hours=1))
        assert "location" not in _get(client, "/login").headers

    def test_unknown_role_goes_to_login(self, client):
        _with_token(client, "superuser")
        assert _location(_get(client, "/dashboard")).path == "/login"

    def test_uppercase_role_claim_is_normalised(self, client):
        _with_token(client, "MANAGER")
        assert "location" not in _get(client, "/admin").headers

    def test_gate_does_not_consult_database(self, client):
        # "u-1" does not exist; the gate only trusts the signed claims
        _with_token(client, Role.AGENT.value)
        assert "location" not in _get(client, "/dashboard").headers
