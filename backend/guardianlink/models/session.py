"""
Sesiones activas (una por login).
El JWT lleva el `sid`; cerrar sesión borra el documento y el token deja de valer.
"""
from datetime import datetime, timezone
from typing import Optional

from anyio import to_thread
from bson import ObjectId


class SessionRepo:
    def __init__(self, db) -> None:
        self.col = db["sessions"]

    async def open(self, user_id: str, client_id: Optional[str] = None) -> str:
        doc = {
            "user_id": user_id,
            "client_id": client_id,
            "created_at": datetime.now(timezone.utc),
        }

        def _insert() -> str:
            return str(self.col.insert_one(doc).inserted_id)

        return await to_thread.run_sync(_insert)

    async def is_active(self, sid: str, user_id: str) -> bool:
        def _find() -> bool:
            if not sid or not ObjectId.is_valid(sid):
                return False
            return self.col.find_one({"_id": ObjectId(sid), "user_id": user_id}) is not None

        return await to_thread.run_sync(_find)

    async def get(self, sid: str) -> Optional[dict]:
        def _find() -> Optional[dict]:
            if not sid or not ObjectId.is_valid(sid):
                return None
            return self.col.find_one({"_id": ObjectId(sid)})

        return await to_thread.run_sync(_find)

    async def close(self, sid: str) -> None:
        def _delete() -> None:
            if sid and ObjectId.is_valid(sid):
                self.col.delete_one({"_id": ObjectId(sid)})

        await to_thread.run_sync(_delete)
