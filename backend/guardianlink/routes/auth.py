# guardianlink/routes/auth.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Response, WebSocket, status
from pydantic import BaseModel, EmailStr
from ..core.deps import current_user, get_auth_service
from ..models.user import UserCreate, UserPublic
from ..services.auth_service import AuthService
from ..sockets.session_ws import watch_session

router = APIRouter()


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED, summary="Registrar usuario")
async def register(payload: UserCreate, svc: AuthService = Depends(get_auth_service)):
    return await svc.sign_up(payload)


@router.post("/login", response_model=TokenOut, summary="Login y obtención de JWT")
async def login(
    payload: LoginIn,
    svc: AuthService = Depends(get_auth_service),
    x_client_id: Optional[str] = Header(default=None),
):
    """
    `X-Client-Id` identifica al navegador/dispositivo; su suscriptor de sesión
    (WS /auth/session/ws) recibe el usuario recién autenticado.
    """
    user, token = await svc.sign_in(payload.email, payload.password, x_client_id)
    return TokenOut(access_token=token, user=user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Cerrar sesión")
async def logout(
    user=Depends(current_user),
    svc: AuthService = Depends(get_auth_service),
    x_client_id: Optional[str] = Header(default=None),
):
    await svc.sign_out(user["sid"], x_client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/session/ws")
async def session_ws(websocket: WebSocket):
    """
    Cambios de sesión en vivo para ?client_id=<id>.
    Envía {"user": {...}} o {"user": null} al conectar y en cada login/logout.
    """
    await watch_session(websocket, websocket.app.state.session_context)
