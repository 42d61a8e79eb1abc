import asyncio
import json
import pytest
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient
from sqlalchemy import delete

from src.api.router import health
from src.api.router.auth import get_oauth_client
from src.api.utils import views
from src.core.service.auth.models.oauth import OAuthProfile
from src.core.service.auth.models.user import UserRole
from src.infra.config.settings import settings
from src.infra.models import ServiceModel, UserModel
from src.infra.repository.user_repository import UserRepository

MEMBER = {"username": "ninja", "email": "ninja@example.com", "password": "correct horse battery"}
ADMIN = {"username": "boss", "email": "boss@example.com", "password": "correct horse staple"}
PROVISIONING_TOKEN = "provisioning-secret"
PROVISIONING_HEADERS = {"X-Provisioning-Token": PROVISIONING_TOKEN}


class FakeOAuthClient:
    configured = True

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.com/auth?state={state}"

    async def fetch_profile(self, code: str) -> OAuthProfile:
        return OAuthProfile(email="gmail@example.com", display_name="G Mail")


def _seed_catalog(db_session):
    async def seed():
        db_session.add_all([
            ServiceModel(name="WhatsApp", price=Decimal("1.50"), ltr_short_price=Decimal("2.00"),
                         ltr_price=Decimal("5.00"), available="1"),
            ServiceModel(name="Telegram", price=Decimal("1.00"), ltr_short_price=Decimal("1.00"),
                         ltr_price=Decimal("4.00"), available="0"),
        ])
        await db_session.commit()
    asyncio.run(seed())


def _register(client, account=MEMBER):
    response = client.post("/auth/register", json=account)
    assert response.status_code == 201
    return response


def _admin_client(app, db_session):
    admin = TestClient(app, raise_server_exceptions=False)
    _register(admin, ADMIN)
    asyncio.run(UserRepository(db_session).set_role(ADMIN["email"], UserRole.ADMIN))
    return admin


def _expire_cached_identity(redis_double):
    for key, raw in redis_double.data.items():
        data = json.loads(raw)
        if data.get("userData"):
            data["userData"]["lastFetch"] = 0
            redis_double.data[key] = json.dumps(data)


class TestAmbientHeaders:
    def test_index_is_plain_text_and_never_cached(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text.startswith("Welcome to NumRent")
        assert response.headers["Cache-Control"] == "no-store, no-cache, private, must-revalidate"
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "-1"
        assert response.headers["X-Request-ID"]

    def test_request_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_static_assets_are_cacheable(self, client):
        response = client.get("/static/app.css")
        assert response.headers["Cache-Control"] == f"public, max-age={settings.STATIC_ASSET_MAX_AGE}"

    def test_anonymous_visit_does_not_set_cookie(self, client, redis_double):
        response = client.get("/")
        assert settings.SESSION_COOKIE_NAME not in response.cookies
        assert redis_double.data == {}


class TestErrorBoundary:
    @pytest.fixture
    def failing_app(self, app):
        @app.get("/boom")
        async def boom():
            raise RuntimeError("database exploded")
        return app

    def test_unhandled_error_renders_generic_page(self, failing_app):
        client = TestClient(failing_app, raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/html")
        assert "Something went wrong!" in response.text
        assert "database exploded" not in response.text
        assert "Return to Home" in response.text
        assert response.headers["Cache-Control"] == "no-store, no-cache, private, must-revalidate"

    def test_development_shows_error_message(self, failing_app, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")
        client = TestClient(failing_app, raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert "database exploded" in response.text

    def test_missing_template_falls_back_to_inline_page(self, failing_app, monkeypatch, tmp_path):
        monkeypatch.setattr(views, "get_templates_dir", lambda: tmp_path)
        client = TestClient(failing_app, raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.text.startswith("<h1>Something went wrong!</h1>")
        assert '<a href="/">Return to Home</a>' in response.text

    def test_slow_request_times_out_with_json_envelope(self, app, monkeypatch):
        monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 0.2)

        @app.get("/slow")
        async def slow():
            await asyncio.sleep(2)
            return {"done": True}

        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/slow", headers={"X-Request-ID": "slow-1"})

        assert response.status_code == 503
        body = response.json()
        assert body["error"]["code"] == "TIMEOUT"
        assert body["error"]["request_id"] == "slow-1"

    def test_validation_errors_use_json_envelope(self, client):
        response = client.post("/auth/register", json={"email": "not-an-email"})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_INPUT"


class TestSessionLifecycle:
    def test_register_then_dashboard_then_logout(self, client, redis_double):
        response = _register(client)
        assert response.json()["user"] == {
            "username": "ninja", "email": "ninja@example.com", "balance": "0.00", "role": "Member"
        }
        assert settings.SESSION_COOKIE_NAME in response.cookies
        assert len(redis_double.data) == 1

        response = client.get("/user/api/dashboard")
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "ninja@example.com"
        assert body["stats"] == {
            "total_orders": 0, "success_orders": 0, "total_rentals": 0, "active_rentals": 0
        }

        page = client.get("/user/dashboard")
        assert page.status_code == 200
        assert "ninja (Member)" in page.text
        assert "Balance: $0.00" in page.text

        response = client.post("/auth/logout")
        assert response.status_code == 200
        assert redis_double.data == {}

        response = client.get("/user/api/dashboard")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    def test_deleted_user_renders_anonymous_view(self, client, db_session):
        _register(client)

        async def delete_user():
            await db_session.execute(delete(UserModel).where(UserModel.email == MEMBER["email"]))
            await db_session.commit()
        asyncio.run(delete_user())

        page = client.get("/user/dashboard")

        assert page.status_code == 200
        assert "ninja (Member)" not in page.text
        assert "Total rentals: 0" in page.text
        assert client.get("/user/api/dashboard").json()["user"] is None

    def test_anonymous_dashboard_redirects_home(self, client):
        response = client.get("/user/dashboard", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    def test_login_with_wrong_password(self, client):
        _register(client)
        client.cookies.clear()

        response = client.post("/auth/login", json={"email": MEMBER["email"], "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_session_store_outage_serves_anonymous(self, app, monkeypatch):
        async def broken_store():
            raise ConnectionError("redis down")

        from src.api.middleware.session import session_middleware
        monkeypatch.setattr(session_middleware, "get_session_store", broken_store)
        client = TestClient(app, raise_server_exceptions=False)

        assert client.get("/").status_code == 200
        assert client.get("/user/api/dashboard").status_code == 401


class TestPurchasesAndBalance:
    def test_cached_balance_lags_until_snapshot_expires(self, app, client, db_session, redis_double):
        _register(client)
        assert client.get("/user/api/dashboard").json()["user"]["balance"] == "0.00"

        admin = _admin_client(app, db_session)
        response = admin.post(f"/admin/users/{MEMBER['email']}/balance", json={"amount": "20.00"})
        assert response.status_code == 200
        assert response.json()["user"]["balance"] == "20.00"

        # Snapshot is still inside its cache window
        assert client.get("/user/api/dashboard").json()["user"]["balance"] == "0.00"

        _expire_cached_identity(redis_double)
        assert client.get("/user/api/dashboard").json()["user"]["balance"] == "20.00"

    def test_rent_and_order_flow_updates_stats(self, app, client, db_session, monkeypatch):
        monkeypatch.setattr(settings, "PROVISIONING_TOKEN", PROVISIONING_TOKEN)
        _seed_catalog(db_session)
        _register(client)
        admin = _admin_client(app, db_session)
        admin.post(f"/admin/users/{MEMBER['email']}/balance", json={"amount": "10.00"})

        services = client.get("/user/services").json()["services"]
        assert [service["name"] for service in services] == ["WhatsApp"]

        response = client.post("/user/rentals", json={"service": "WhatsApp", "duration": "3days"})
        assert response.status_code == 201
        assert response.json()["rental"]["status"] == "active"

        response = client.post("/user/orders", json={"service": "WhatsApp", "country": "US"})
        assert response.status_code == 201
        order_id = response.json()["order"]["id"]

        response = client.patch(
            f"/provisioning/orders/{order_id}",
            json={"status": "completed", "number": "+15550100"},
            headers=PROVISIONING_HEADERS
        )
        assert response.status_code == 200
        assert response.json()["order"]["number"] == "+15550100"

        response = client.patch(
            f"/provisioning/orders/{order_id}", json={"status": "failed"}, headers=PROVISIONING_HEADERS
        )
        assert response.status_code == 409

        stats = client.get("/user/api/dashboard").json()["stats"]
        assert stats == {"total_orders": 1, "success_orders": 1, "total_rentals": 1, "active_rentals": 1}

    @pytest.mark.parametrize("headers", [{}, {"X-Provisioning-Token": "guess"}])
    def test_member_cannot_resolve_own_order(self, client, db_session, monkeypatch, headers):
        monkeypatch.setattr(settings, "PROVISIONING_TOKEN", PROVISIONING_TOKEN)
        _seed_catalog(db_session)
        _register(client)
        asyncio.run(UserRepository(db_session).credit_balance(MEMBER["email"], Decimal("5.00")))
        order_id = client.post("/user/orders", json={"service": "WhatsApp", "country": "US"}).json()["order"]["id"]

        response = client.patch(
            f"/provisioning/orders/{order_id}",
            json={"status": "completed", "number": "+15550100"},
            headers=headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"
        assert client.patch(f"/user/orders/{order_id}", json={"status": "completed"}).status_code in (404, 405)
        stats = client.get("/user/api/dashboard").json()["stats"]
        assert stats["total_orders"] == 1
        assert stats["success_orders"] == 0

    def test_resolution_disabled_without_configured_token(self, client, monkeypatch):
        monkeypatch.setattr(settings, "PROVISIONING_TOKEN", None)

        response = client.patch(
            "/provisioning/orders/00000000-0000-0000-0000-000000000000",
            json={"status": "failed"},
            headers={"X-Provisioning-Token": ""}
        )

        assert response.status_code == 403

    def test_rejected_purchases(self, client, db_session):
        _seed_catalog(db_session)
        _register(client)

        response = client.post("/user/rentals", json={"service": "WhatsApp", "duration": "30days"})
        assert response.status_code == 402
        assert response.json()["error"]["code"] == "INSUFFICIENT_BALANCE"

        response = client.post("/user/orders", json={"service": "Telegram", "country": "US"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"

        response = client.post("/user/rentals", json={"service": "WhatsApp", "duration": "7days"})
        assert response.status_code == 422

    def test_anonymous_purchase_is_rejected(self, client):
        response = client.post("/user/rentals", json={"service": "WhatsApp", "duration": "3days"})
        assert response.status_code == 401

    def test_member_cannot_use_admin_actions(self, client):
        _register(client)

        response = client.post(f"/admin/users/{MEMBER['email']}/balance", json={"amount": "5.00"})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"


class TestGoogleSignIn:
    @pytest.fixture
    def oauth_app(self, app):
        app.dependency_overrides[get_oauth_client] = lambda: FakeOAuthClient()
        return app

    def test_redirect_and_callback_sign_in(self, oauth_app):
        client = TestClient(oauth_app, raise_server_exceptions=False)

        response = client.get("/auth/google", follow_redirects=False)
        assert response.status_code == 302
        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]

        response = client.get(
            "/auth/google/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/user/dashboard"

        user = client.get("/user/api/dashboard").json()["user"]
        assert user == {"username": "G Mail", "email": "gmail@example.com", "balance": "0.00", "role": "Member"}

    def test_state_mismatch_is_rejected(self, oauth_app):
        client = TestClient(oauth_app, raise_server_exceptions=False)
        client.get("/auth/google", follow_redirects=False)

        response = client.get("/auth/google/callback", params={"code": "auth-code", "state": "forged"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "OAUTH_FAILED"

    def test_unconfigured_provider(self, client, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", None)

        response = client.get("/auth/google", follow_redirects=False)

        assert response.status_code == 503


class TestHealth:
    @pytest.mark.parametrize("database,expected", [("healthy", "healthy"), ("unhealthy", "degraded")])
    def test_health_reports_dependencies(self, client, monkeypatch, database, expected):
        async def redis_ok():
            return {"status": "healthy", "message": "Connected"}

        async def database_check():
            return {"status": database, "message": "checked"}

        monkeypatch.setattr(health, "check_redis_health", redis_ok)
        monkeypatch.setattr(health, "check_database_health", database_check)

        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == expected
        assert data["service"] == settings.APP_NAME
        assert data["version"] == settings.APP_VERSION
        assert data["services"] == {"session_store": "healthy", "database": database, "api": "healthy"}
