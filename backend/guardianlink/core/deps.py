"""
Dependencias comunes para FastAPI:
- current_db
- current_user (via Authorization: Bearer <token>, con sesión activa en Mongo)
- contexto de sesión, servicios y colaboradores del SOS (sobrescribibles en pruebas)
"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pymongo.errors import PyMongoError
from ..db.mongo import get_db
from ..core.security import decode_jwt
from ..models.contact import ContactRepo
from ..models.session import SessionRepo
from ..models.user import UserRepo
from ..services.auth_service import AuthService, provider_outage
from ..services.dispatch import LinkCollector
from ..services.session_context import SessionContext

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def current_db():
    return get_db()

async def current_user(token: str = Depends(oauth2_scheme), db=Depends(current_db)) -> dict:
    try:
        payload = decode_jwt(token)
        uid, sid = payload["sub"], payload.get("sid")
    except (JWTError, KeyError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        active = await SessionRepo(db).is_active(sid, uid)
    except PyMongoError:
        raise provider_outage("session check")
    if not active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")
    return {"sub": uid, "sid": sid}

def current_session_context(request: Request) -> SessionContext:
    return request.app.state.session_context

def get_auth_service(db=Depends(current_db), ctx: SessionContext = Depends(current_session_context)) -> AuthService:
    return AuthService(UserRepo(db), SessionRepo(db), ctx)

def get_contact_repo(db=Depends(current_db)) -> ContactRepo:
    return ContactRepo(db)

def get_enhancer(request: Request):
    return request.app.state.enhancer

def get_dispatcher() -> LinkCollector:
    return LinkCollector()
