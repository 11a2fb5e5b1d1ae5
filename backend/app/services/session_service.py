"""
Foundation API Backend — Session Service
==========================================

What:  Resolves the signed-in user of a request from the session tables the
       external auth service writes.
How:   Reads the session token from `Authorization: Bearer <token>` or from
       the session cookie, then loads the unexpired session and its user in
       one query.
Who:   Used by the auth dependencies (app.dependencies.auth).

Cookie format:
    The auth service signs its cookie as "<token>.<signature>"; only the
    token part is stored in the session table. Over HTTPS the cookie name
    carries a "__Secure-" prefix.

Cross-site protection:
    Cookies are sent by browsers automatically, so a cookie-authenticated
    POST / PUT / PATCH / DELETE must come from a trusted Origin. Bearer
    tokens are never attached by the browser and skip this check.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from app.config import settings
from app.cors import is_trusted_origin
from app.exceptions import ForbiddenError
from app.models.auth import SessionEntity, UserEntity
from app.models.base import utcnow

logger = logging.getLogger(__name__)

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class AuthContext:
    user: UserEntity
    session: SessionEntity


class SessionService:
    def extract_token(self, request: Request) -> Tuple[Optional[str], bool]:
        """
        Returns (token, from_cookie). The Authorization header wins over
        the cookie when both are present.
        """
        authorization = request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip(), False

        cookie_name = settings.auth_session_cookie
        raw = request.cookies.get(cookie_name) or request.cookies.get(f"__Secure-{cookie_name}")
        if raw:
            token = raw.split(".", 1)[0]
            if token:
                return token, True
        return None, False

    def check_origin(self, request: Request) -> None:
        """
        Raises:
            ForbiddenError: cookie-authenticated unsafe request from an
                            untrusted Origin.
        """
        if request.method not in UNSAFE_METHODS:
            return
        origin = request.headers.get("origin")
        if not is_trusted_origin(origin, settings.cors_origin):
            logger.warning(
                "Rejected cookie-authenticated %s %s from untrusted origin %s",
                request.method,
                request.url.path,
                origin,
            )
            raise ForbiddenError("Origin not allowed", context={"origin": origin})

    async def get_session(self, db: AsyncSession, token: str) -> Optional[AuthContext]:
        stmt = (
            select(SessionEntity, UserEntity)
            .join(UserEntity, UserEntity.id == SessionEntity.user_id)
            .where(
                SessionEntity.token == token,
                SessionEntity.expires_at > utcnow(),
                SessionEntity.deleted_at.is_(None),
                UserEntity.deleted_at.is_(None),
            )
        )
        row = (await db.execute(stmt)).first()
        if row is None:
            return None
        session, user = row
        return AuthContext(user=user, session=session)

    async def resolve(self, request: Request, db: AsyncSession) -> Optional[AuthContext]:
        """
        Auth context of the request, or None when it carries no valid session.
        The user and session are also stored on request.state.
        """
        token, from_cookie = self.extract_token(request)
        if token is None:
            return None
        if from_cookie:
            self.check_origin(request)

        context = await self.get_session(db, token)
        if context is None:
            logger.debug("No active session for presented token")
            return None

        request.state.user = context.user
        request.state.session = context.session
        return context


session_service = SessionService()
