# guardianlink/services/session_context.py
"""
Contexto de sesión de todo el proceso (no es un singleton global):
- Se crea en el lifespan (startup) y se guarda en `app.state`.
- Los consumidores lo reciben por dependencias de FastAPI.
- `close()` en shutdown cancela todas las suscripciones.

Cada "scope" es un cliente (navegador/dispositivo). Por scope hay como mucho
un suscriptor activo; uno nuevo reemplaza al anterior.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..models.user import UserPublic

log = logging.getLogger("guardianlink.auth")

SessionCallback = Callable[[Optional[UserPublic]], Union[None, Awaitable[None]]]


class Subscription:
    """Handle de cancelación. `unsubscribe()` es idempotente."""

    def __init__(self, context: "SessionContext", scope: str, callback: SessionCallback) -> None:
        self._context = context
        self.scope = scope
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._context._drop(self)


class SessionContext:
    def __init__(self) -> None:
        self._state: Dict[str, Optional[UserPublic]] = {}
        self._subs: Dict[str, Subscription] = {}
        self.closed = False

    def current(self, scope: str) -> Optional[UserPublic]:
        return self._state.get(scope)

    async def subscribe(self, scope: str, callback: SessionCallback) -> Subscription:
        """
        Registra `callback` para el scope y lo invoca de inmediato con el estado actual.
        Si ya había un suscriptor en el scope, queda desactivado.
        """
        if self.closed:
            raise RuntimeError("SessionContext cerrado")

        previous = self._subs.get(scope)
        if previous is not None:
            previous.active = False
            log.info("session subscriber replaced scope=%s", scope)

        sub = Subscription(self, scope, callback)
        self._subs[scope] = sub
        await _call(callback, self._state.get(scope))
        return sub

    async def publish(self, scope: Optional[str], user: Optional[UserPublic]) -> None:
        """Cambia el estado del scope (login → user, logout → None) y avisa al suscriptor."""
        if not scope or self.closed:
            return
        if user is None:
            self._state.pop(scope, None)
        else:
            self._state[scope] = user

        sub = self._subs.get(scope)
        if sub is None or not sub.active:
            return
        try:
            await _call(sub.callback, user)
        except Exception:
            # un suscriptor roto no tumba el login/logout
            log.exception("session callback failed scope=%s", scope)
            sub.unsubscribe()

    def _drop(self, sub: Subscription) -> None:
        if self._subs.get(sub.scope) is sub:
            del self._subs[sub.scope]

    def subscriber_count(self) -> int:
        return len(self._subs)

    def close(self) -> None:
        for sub in list(self._subs.values()):
            sub.active = False
        self._subs.clear()
        self._state.clear()
        self.closed = True


async def _call(callback: SessionCallback, user: Optional[UserPublic]) -> Any:
    result = callback(user)
    if inspect.isawaitable(result):
        return await result
    return result
