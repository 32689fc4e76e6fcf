# guardianlink/services/auth_service.py
"""
Servicio de identidad: alta, login, logout y aviso de cambios de sesión.
Los fallos del proveedor (Mongo caído) se reportan como IdentityError 503.
"""
import logging
from typing import Optional, Tuple

from pymongo.errors import PyMongoError

from ..core.errors import IdentityError
from ..core.security import create_jwt, verify_password
from ..models.session import SessionRepo
from ..models.user import UserCreate, UserPublic, UserRepo, to_public
from .session_context import SessionCallback, SessionContext, Subscription

log = logging.getLogger("guardianlink.auth")

INVALID_CREDENTIALS = "Invalid email or password."


def provider_outage(action: str) -> IdentityError:
    log.exception("identity provider failure during %s", action)
    return IdentityError("Authentication service is unavailable. Please try again.",
                         code="provider_unavailable", status_code=503)


class AuthService:
    def __init__(self, user_repo: UserRepo, session_repo: SessionRepo, context: SessionContext) -> None:
        self.user_repo = user_repo
        self.session_repo = session_repo
        self.context = context

    async def sign_up(self, data: UserCreate) -> UserPublic:
        try:
            user = await self.user_repo.create(data)
        except PyMongoError:
            raise provider_outage("sign_up")
        log.info("user registered uid=%s", user.uid)
        return user

    async def sign_in(self, email: str, password: str, client_id: Optional[str] = None) -> Tuple[UserPublic, str]:
        try:
            doc = await self.user_repo.get_by_email(email)
        except PyMongoError:
            raise provider_outage("sign_in")

        if not doc or not verify_password(password, doc["password_hash"]):
            raise IdentityError(INVALID_CREDENTIALS, code="invalid_credentials")
        if doc.get("disabled"):
            raise IdentityError("This account has been disabled.", code="account_disabled")

        user = to_public(doc)
        try:
            sid = await self.session_repo.open(user.uid, client_id)
        except PyMongoError:
            raise provider_outage("sign_in")

        token = create_jwt({"sub": user.uid, "sid": sid})
        await self.context.publish(client_id, user)
        log.info("user signed in uid=%s", user.uid)
        return user, token

    async def sign_out(self, sid: str, client_id: Optional[str] = None) -> None:
        try:
            session = await self.session_repo.get(sid)
            await self.session_repo.close(sid)
        except PyMongoError:
            raise provider_outage("sign_out")

        scope = client_id or (session or {}).get("client_id")
        await self.context.publish(scope, None)
        log.info("session closed sid=%s", sid)

    async def on_session_change(self, client_id: str, callback: SessionCallback) -> Subscription:
        """Se invoca ya con el estado actual y luego en cada login/logout del cliente."""
        return await self.context.subscribe(client_id, callback)
