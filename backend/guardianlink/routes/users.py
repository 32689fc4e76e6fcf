from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.errors import PyMongoError
from ..core.deps import current_db, current_user
from ..models.user import UserPublic, UserRepo
from ..services.auth_service import provider_outage

router = APIRouter()

@router.get("/me", response_model=UserPublic, summary="Datos del usuario autenticado")
async def me(user=Depends(current_user), db=Depends(current_db)):
    """
    Retorna la proyección mínima del usuario del token.
    """
    try:
        u = await UserRepo(db).get_by_id(user["sub"])
    except PyMongoError:
        raise provider_outage("me")
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return u
