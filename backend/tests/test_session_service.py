"""
Foundation API Backend — Session Resolution Tests
===================================================

What:  Tests for SessionService (token extraction, origin check, lookup) and
       for the auth dependencies as seen through real routes.
How:   Token extraction and origin checks run on bare requests; lookups run
       against the in-memory SQLite database.

What we test:
    ✅ Bearer header wins over the cookie
    ✅ Signed cookie value → token part; __Secure- cookie name
    ✅ Cookie-authenticated writes from untrusted origins → 403
    ✅ Expired, unknown and soft-deleted sessions resolve to None
    ✅ require_session → 401 UNAUTHORIZED on protected routes
"""

from datetime import timedelta

import pytest

from app.exceptions import ForbiddenError
from app.models.auth import SessionEntity, UserEntity
from app.models.base import utcnow
from app.services.session_service import SessionService

COOKIE = "better-auth.session_token"
SESSION_TOKEN = "test-session-token"


class TestExtractToken:
    def setup_method(self):
        self.service = SessionService()

    def test_bearer_token(self, make_request):
        request = make_request(headers={"Authorization": "Bearer abc"})
        assert self.service.extract_token(request) == ("abc", False)

    def test_bearer_wins_over_cookie(self, make_request):
        request = make_request(
            headers={"Authorization": "Bearer abc", "Cookie": f"{COOKIE}=xyz.sig"}
        )
        assert self.service.extract_token(request) == ("abc", False)

    def test_signed_cookie_keeps_token_part(self, make_request):
        request = make_request(headers={"Cookie": f"{COOKIE}=xyz.signature"})
        assert self.service.extract_token(request) == ("xyz", True)

    def test_secure_cookie_name(self, make_request):
        request = make_request(headers={"Cookie": f"__Secure-{COOKIE}=xyz.signature"})
        assert self.service.extract_token(request) == ("xyz", True)

    def test_other_schemes_are_ignored(self, make_request):
        request = make_request(headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert self.service.extract_token(request) == (None, False)


class TestCheckOrigin:
    def setup_method(self):
        self.service = SessionService()

    def test_safe_methods_skip_the_check(self, make_request):
        request = make_request(method="GET", headers={"Origin": "https://evil.example.com"})
        self.service.check_origin(request)

    def test_trusted_origin_passes(self, make_request):
        request = make_request(method="POST", headers={"Origin": "http://localhost:3000"})
        self.service.check_origin(request)

    def test_untrusted_origin_is_forbidden(self, make_request):
        request = make_request(method="DELETE", headers={"Origin": "https://evil.example.com"})
        with pytest.raises(ForbiddenError, match="Origin not allowed"):
            self.service.check_origin(request)


class TestGetSession:
    def setup_method(self):
        self.service = SessionService()

    @pytest.mark.asyncio
    async def test_active_session_resolves(self, db_session, signed_in_user):
        context = await self.service.get_session(db_session, SESSION_TOKEN)
        assert context.user.id == signed_in_user.id
        assert context.session.token == SESSION_TOKEN

    @pytest.mark.asyncio
    async def test_unknown_token(self, db_session, signed_in_user):
        assert await self.service.get_session(db_session, "nope") is None

    @pytest.mark.asyncio
    async def test_expired_session(self, db_session, signed_in_user):
        db_session.add(
            SessionEntity(
                user_id=signed_in_user.id,
                token="expired-token",
                expires_at=utcnow() - timedelta(minutes=1),
            )
        )
        await db_session.commit()
        assert await self.service.get_session(db_session, "expired-token") is None

    @pytest.mark.asyncio
    async def test_soft_deleted_user(self, db_session):
        user = UserEntity(email="gone@example.com", deleted_at=utcnow())
        db_session.add(user)
        await db_session.flush()
        db_session.add(
            SessionEntity(user_id=user.id, token="ghost", expires_at=utcnow() + timedelta(days=1))
        )
        await db_session.commit()
        assert await self.service.get_session(db_session, "ghost") is None

    @pytest.mark.asyncio
    async def test_resolve_sets_request_state(self, db_session, signed_in_user, make_request):
        request = make_request(headers={"Authorization": f"Bearer {SESSION_TOKEN}"})
        context = await self.service.resolve(request, db_session)
        assert request.state.user is context.user
        assert request.state.session is context.session

    @pytest.mark.asyncio
    async def test_resolve_without_token(self, mock_db_session, make_request):
        assert await self.service.resolve(make_request(), mock_db_session) is None
        mock_db_session.execute.assert_not_awaited()


class TestAuthDependencies:
    @pytest.mark.asyncio
    async def test_protected_route_without_session(self, test_client):
        response = await test_client.get("/products/mine")
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "UNAUTHORIZED"
        assert body["message"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_protected_route_with_bearer(self, test_client, auth_headers):
        response = await test_client.get("/products/mine", headers=auth_headers)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_cookie_session_from_untrusted_origin(self, test_client, signed_in_user):
        response = await test_client.post(
            "/products",
            json={"name": "Lamp", "price": 10, "category": "other", "stock_quantity": 1},
            headers={
                "Cookie": f"{COOKIE}={SESSION_TOKEN}.signature",
                "Origin": "https://evil.example.com",
            },
        )
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_cookie_session_from_trusted_origin(self, test_client, signed_in_user):
        response = await test_client.post(
            "/products",
            json={"name": "Lamp", "price": 10, "category": "other", "stock_quantity": 1},
            headers={
                "Cookie": f"{COOKIE}={SESSION_TOKEN}.signature",
                "Origin": "http://localhost:3000",
            },
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_expired_session_is_unauthorized(self, test_client, db_session, signed_in_user):
        db_session.add(
            SessionEntity(
                user_id=signed_in_user.id,
                token="stale",
                expires_at=utcnow() - timedelta(hours=1),
            )
        )
        await db_session.commit()
        response = await test_client.get("/products/mine", headers={"Authorization": "Bearer stale"})
        assert response.status_code == 401
