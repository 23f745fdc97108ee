"""Tests for the request authorization dependency (core.guards)."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from core.errors import register_exception_handlers
from core.guards import require_auth
from core.permissions import Permission, Role
from core.security import AUTH_COOKIE, create_access_token
from models.user import User


@pytest.fixture
def guarded_app():
    """Minimal app exposing one endpoint per guard flavour."""
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/any")
    def any_user(user=Depends(require_auth())):
        return {"success": True, "id": user.id, "role": user.role.value}

    @app.get("/admins")
    def admins_only(user=Depends(require_auth(required_roles=[Role.ADMIN]))):
        return {"success": True}

    @app.get("/delete-users")
    def needs_delete(user=Depends(require_auth(required_permissions=[Permission.USERS_DELETE]))):
        return {"success": True}

    @app.get("/both")
    def needs_both(user=Depends(require_auth(
        required_permissions=[Permission.USERS_VIEW, Permission.AUDIT_VIEW],
        required_roles=[Role.MANAGER, Role.ADMIN],
    ))):
        return {"success": True}

    return app


@pytest.fixture
def app_client(guarded_app):
    return TestClient(guarded_app, raise_server_exceptions=False)


def _auth(client, user, **token_kwargs):
    client.cookies.clear()
    client.cookies.set(AUTH_COOKIE, create_access_token(user.id, user.email, user.role.value, **token_kwargs))


class TestUnauthenticated:
    def test_no_cookie(self, client):
        response = client.delete("/api/users/anything")
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_all_causes_look_identical(self, client, make_user, db):
        responses = []

        client.cookies.clear()
        responses.append(client.get("/api/users"))

        user = make_user(Role.ADMIN)
        _auth(client, user, issued_at=datetime.now(timezone.utc) - timedelta(hours=1))
        responses.append(client.get("/api/users"))

        client.cookies.clear()
        client.cookies.set(AUTH_COOKIE, "not.a.token")
        responses.append(client.get("/api/users"))

        _auth(client, user)
        db.delete(db.get(User, user.id))
        db.commit()
        responses.append(client.get("/api/users"))

        assert {r.status_code for r in responses} == {401}
        bodies = [r.json() for r in responses]
        assert all(b == bodies[0] for b in bodies)
        assert bodies[0] == {"success": False, "error": "Not authenticated"}


class TestForbidden:
    def test_demandeur_cannot_delete_users(self, client, login_as, make_user):
        target = make_user(Role.AGENT)
        login_as(Role.DEMANDEUR)
        response = client.delete(f"/api/users/{target.id}")
        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Insufficient permissions"}

    def test_forbidden_is_distinct_from_unauthenticated(self, app_client, make_user):
        _auth(app_client, make_user(Role.AGENT))
        assert app_client.get("/delete-users").status_code == 403
        app_client.cookies.clear()
        assert app_client.get("/delete-users").status_code == 401

    @pytest.mark.parametrize("role, status", [
        (Role.DEMANDEUR, 403),
        (Role.AGENT, 403),
        (Role.MANAGER, 403),
        (Role.ADMIN, 200),
    ])
    def test_required_roles(self, app_client, make_user, role, status):
        _auth(app_client, make_user(role))
        assert app_client.get("/admins").status_code == status

    @pytest.mark.parametrize("role, status", [
        (Role.AGENT, 403),
        (Role.MANAGER, 200),
        (Role.ADMIN, 200),
    ])
    def test_every_permission_and_role_must_hold(self, app_client, make_user, role, status):
        _auth(app_client, make_user(role))
        assert app_client.get("/both").status_code == status


class TestFreshRole:
    def test_downgrade_applies_to_existing_token(self, app_client, make_user, db):
        user = make_user(Role.ADMIN)
        _auth(app_client, user)
        assert app_client.get("/delete-users").status_code == 200

        db.get(User, user.id).role = "DEMANDEUR"
        db.commit()
        assert app_client.get("/delete-users").status_code == 403

    def test_token_role_claim_is_not_trusted(self, app_client, make_user):
        user = make_user(Role.DEMANDEUR)
        app_client.cookies.set(AUTH_COOKIE, create_access_token(user.id, user.email, "admin"))
        assert app_client.get("/delete-users").status_code == 403
        assert app_client.get("/any").json()["role"] == "demandeur"

    def test_revoked_session(self, app_client, make_user, db):
        user = make_user(Role.AGENT)
        _auth(app_client, user, issued_at=datetime.now(timezone.utc) - timedelta(minutes=5))
        assert app_client.get("/any").status_code == 200

        db.get(User, user.id).sessions_valid_after = datetime.now(timezone.utc)
        db.commit()
        assert app_client.get("/any").status_code == 401

    def test_unmapped_stored_role_is_a_server_error(self, app_client, make_user, db):
        user = make_user(Role.AGENT)
        _auth(app_client, user)
        db.execute(User.__table__.update().where(User.id == user.id).values(role="ROOT"))
        db.commit()

        response = app_client.get("/any")
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}
