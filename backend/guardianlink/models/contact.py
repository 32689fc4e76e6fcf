# guardianlink/models/contact.py
"""
Contactos de emergencia (máximo MAX_CONTACTS por usuario).

Todas las consultas van filtradas por `user_id`: este repo nunca lee ni
escribe contactos de otro usuario. El tope se vuelve a contar en Mongo al
escribir, nunca se confía en el conteo que trae el cliente.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from anyio import to_thread
from bson import ObjectId
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from ..core.config import settings
from ..core.errors import ContactNotFound, InvalidArgument, LimitExceeded, StoreError

log = logging.getLogger("guardianlink.contacts")

NUMBER_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
NAME_MAX = 50
NUMBER_MIN_LEN = 10


def _clean_name(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("Name is required")
    if len(v) > NAME_MAX:
        raise ValueError(f"Name must be at most {NAME_MAX} characters")
    return v


def _clean_number(v: str) -> str:
    v = (v or "").strip()
    if len(v) < NUMBER_MIN_LEN:
        raise ValueError("WhatsApp number must be at least 10 digits")
    if not NUMBER_RE.match(v):
        raise ValueError("Invalid WhatsApp number format (e.g., +1234567890)")
    return v


# ---------- Pydantic ----------
class ContactCreate(BaseModel):
    name: str
    whatsapp_number: str = Field(..., alias="whatsappNumber")

    class Config:
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _clean_name(v)

    @field_validator("whatsapp_number")
    @classmethod
    def check_number(cls, v):
        return _clean_number(v)


class ContactUpdate(BaseModel):
    """Reemplazo parcial: solo se tocan los campos enviados."""
    name: Optional[str] = None
    whatsapp_number: Optional[str] = Field(default=None, alias="whatsappNumber")

    class Config:
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return None if v is None else _clean_name(v)

    @field_validator("whatsapp_number")
    @classmethod
    def check_number(cls, v):
        return None if v is None else _clean_number(v)

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True, by_alias=True)


class ContactPublic(BaseModel):
    id: str
    name: str
    whatsapp_number: str = Field(..., alias="whatsappNumber")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Config:
        populate_by_name = True


def _to_public(doc: Dict[str, Any]) -> ContactPublic:
    return ContactPublic(
        id=str(doc["_id"]),
        name=doc.get("name", ""),
        whatsappNumber=doc.get("whatsappNumber", ""),
        createdAt=doc.get("createdAt"),
        updatedAt=doc.get("updatedAt"),
    )


def _require_user(user_id: str) -> None:
    if not user_id or not str(user_id).strip():
        raise InvalidArgument("User ID is required.")


def _oid(contact_id: str) -> Optional[ObjectId]:
    if not contact_id or not str(contact_id).strip():
        raise InvalidArgument("Contact ID is required.")
    return ObjectId(contact_id) if ObjectId.is_valid(contact_id) else None


# ---------- Repo ----------
class ContactRepo:
    def __init__(self, db, max_contacts: int | None = None):
        self.col = db["contacts"]
        self.max_contacts = max_contacts or settings.MAX_CONTACTS

    async def list_contacts(self, user_id: str, *, degrade: bool = False) -> List[ContactPublic]:
        """
        Contactos del usuario ordenados por nombre, como mucho `max_contacts`.
        Con degrade=True un fallo de lectura devuelve [] (el llamador decide qué mostrar).
        """
        _require_user(user_id)

        def _fetch() -> List[ContactPublic]:
            cur = self.col.find({"user_id": user_id}).sort("name", ASCENDING).limit(self.max_contacts)
            return [_to_public(d) for d in cur]

        try:
            return await to_thread.run_sync(_fetch)
        except PyMongoError:
            log.exception("list_contacts failed user=%s", user_id)
            if degrade:
                return []
            raise StoreError("Could not load contacts.")

    async def count(self, user_id: str) -> int:
        _require_user(user_id)
        try:
            return await to_thread.run_sync(lambda: self.col.count_documents({"user_id": user_id}))
        except PyMongoError:
            log.exception("count failed user=%s", user_id)
            raise StoreError("Could not load contacts.")

    async def create(self, user_id: str, data: ContactCreate) -> ContactPublic:
        _require_user(user_id)
        limit_msg = f"Maximum of {self.max_contacts} emergency contacts allowed."

        def _insert() -> Dict[str, Any]:
            if self.col.count_documents({"user_id": user_id}) >= self.max_contacts:
                raise LimitExceeded(limit_msg)

            doc: Dict[str, Any] = {
                "user_id": user_id,
                "name": data.name,
                "whatsappNumber": data.whatsapp_number,
                "createdAt": datetime.now(timezone.utc),
            }
            res = self.col.insert_one(doc)

            # Dos altas simultáneas pueden pasar el conteo: se quedan los
            # primeros max_contacts por _id y el resto se revierte.
            keep = [
                d["_id"]
                for d in self.col.find({"user_id": user_id}, {"_id": 1}).sort("_id", ASCENDING).limit(self.max_contacts)
            ]
            if res.inserted_id not in keep:
                self.col.delete_one({"_id": res.inserted_id})
                raise LimitExceeded(limit_msg)

            doc["_id"] = res.inserted_id
            return doc

        try:
            doc = await to_thread.run_sync(_insert)
        except PyMongoError:
            log.exception("create failed user=%s", user_id)
            raise StoreError("Could not save contact.")

        log.info("contact created user=%s id=%s", user_id, doc["_id"])
        return _to_public(doc)

    async def update(self, user_id: str, contact_id: str, data: ContactUpdate) -> ContactPublic:
        _require_user(user_id)
        oid = _oid(contact_id)
        fields = data.to_fields()
        if not fields:
            raise InvalidArgument("Nothing to update.")

        def _update() -> Optional[Dict[str, Any]]:
            if oid is None:
                return None
            return self.col.find_one_and_update(
                {"_id": oid, "user_id": user_id},
                {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )

        try:
            doc = await to_thread.run_sync(_update)
        except PyMongoError:
            log.exception("update failed user=%s id=%s", user_id, contact_id)
            raise StoreError("Could not save contact.")

        if not doc:
            raise ContactNotFound("Contact not found.")
        log.info("contact updated user=%s id=%s fields=%s", user_id, contact_id, sorted(fields))
        return _to_public(doc)

    async def delete(self, user_id: str, contact_id: str) -> None:
        """Idempotente: borrar un contacto inexistente no es error."""
        _require_user(user_id)
        oid = _oid(contact_id)
        if oid is None:
            return

        def _delete() -> int:
            return self.col.delete_one({"_id": oid, "user_id": user_id}).deleted_count

        try:
            deleted = await to_thread.run_sync(_delete)
        except PyMongoError:
            log.exception("delete failed user=%s id=%s", user_id, contact_id)
            raise StoreError("Could not delete contact.")
        log.info("contact delete user=%s id=%s deleted=%s", user_id, contact_id, deleted)
