"""
WebSocket de sesión.
- Un suscriptor por client_id (el más reciente gana).
- Al desconectar se cancela la suscripción para no dejarla colgada.
"""
import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect

from ..models.user import UserPublic
from ..services.session_context import SessionContext

log = logging.getLogger("guardianlink.auth")


async def watch_session(websocket: WebSocket, ctx: SessionContext) -> None:
    client_id = websocket.query_params.get("client_id")
    if not client_id:
        await websocket.close(code=4400)  # Bad request
        return

    await websocket.accept()

    async def push(user: Optional[UserPublic]) -> None:
        await websocket.send_json({"user": user.model_dump() if user else None})

    sub = await ctx.subscribe(client_id, push)
    try:
        while True:
            # el cliente no manda nada útil; esto solo detecta la desconexión
            await websocket.receive_text()
    except WebSocketDisconnect:
        log.info("session ws closed client=%s", client_id)
    finally:
        sub.unsubscribe()
