# guardianlink/models/user.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from anyio import to_thread
from bson import ObjectId
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from ..core.errors import IdentityError
from ..core.security import hash_password


# ---------- Pydantic ----------
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    display_name: Optional[str] = Field(default=None, max_length=80)


class UserPublic(BaseModel):
    """Proyección mínima del usuario: lo único que ve el resto del sistema."""
    uid: str
    email: Optional[EmailStr] = None
    display_name: Optional[str] = None


def to_public(doc: Dict[str, Any]) -> UserPublic:
    return UserPublic(uid=str(doc["_id"]), email=doc.get("email"), display_name=doc.get("display_name"))


# ---------- Repo ----------
class UserRepo:
    def __init__(self, db):
        self.col = db["users"]

    async def create(self, data: UserCreate) -> UserPublic:
        doc: Dict[str, Any] = {
            "email": str(data.email).lower(),
            "display_name": data.display_name,
            "password_hash": hash_password(data.password),
            "disabled": False,
            "created_at": datetime.now(timezone.utc),
        }

        def _insert() -> str:
            res = self.col.insert_one(doc)
            return str(res.inserted_id)

        try:
            inserted_id = await to_thread.run_sync(_insert)
        except DuplicateKeyError:
            raise IdentityError("An account with this email already exists.", code="email_in_use", status_code=409)
        doc["_id"] = inserted_id
        return to_public(doc)

    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Retorna el documento completo (incluye password_hash).
        Ideal para login.
        """
        def _find() -> Optional[Dict[str, Any]]:
            d = self.col.find_one({"email": email.lower()})
            if not d:
                return None
            d["_id"] = str(d["_id"])
            return d

        return await to_thread.run_sync(_find)

    async def get_by_id(self, uid: str) -> Optional[UserPublic]:
        def _find() -> Optional[Dict[str, Any]]:
            if not ObjectId.is_valid(uid):
                return None
            return self.col.find_one({"_id": ObjectId(uid)})

        d = await to_thread.run_sync(_find)
        return to_public(d) if d else None
