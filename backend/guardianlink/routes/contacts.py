# guardianlink/routes/contacts.py
from typing import List

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from ..core.deps import current_user, get_contact_repo
from ..models.contact import ContactCreate, ContactPublic, ContactRepo, ContactUpdate

router = APIRouter()


class ContactsOut(BaseModel):
    contacts: List[ContactPublic]
    count: int
    limit: int
    can_add: bool   # el frontend deshabilita "Agregar" cuando es False


@router.get("", response_model=ContactsOut, summary="Listar mis contactos de emergencia")
async def list_contacts(user=Depends(current_user), repo: ContactRepo = Depends(get_contact_repo)):
    rows = await repo.list_contacts(user["sub"])
    total = await repo.count(user["sub"])
    return ContactsOut(contacts=rows, count=total, limit=repo.max_contacts, can_add=total < repo.max_contacts)


@router.post("", response_model=ContactPublic, status_code=status.HTTP_201_CREATED, summary="Agregar contacto")
async def create_contact(
    payload: ContactCreate,
    user=Depends(current_user),
    repo: ContactRepo = Depends(get_contact_repo),
):
    return await repo.create(user["sub"], payload)


@router.patch("/{contact_id}", response_model=ContactPublic, summary="Editar contacto (parcial)")
async def update_contact(
    contact_id: str,
    payload: ContactUpdate,
    user=Depends(current_user),
    repo: ContactRepo = Depends(get_contact_repo),
):
    return await repo.update(user["sub"], contact_id, payload)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Borrar contacto")
async def delete_contact(
    contact_id: str,
    user=Depends(current_user),
    repo: ContactRepo = Depends(get_contact_repo),
):
    await repo.delete(user["sub"], contact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
