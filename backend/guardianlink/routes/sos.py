from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from ..core.config import settings
from ..core.deps import current_user, get_contact_repo, get_dispatcher, get_enhancer
from ..core.errors import LocationErrorKind
from ..models.contact import ContactRepo
from ..services.location import ClientReportedLocator, LocationFix
from ..services.sos_composer import SosComposer, SosReport

router = APIRouter()


class SosTriggerIn(BaseModel):
    location: Optional[LocationFix] = None
    location_error: Optional[LocationErrorKind] = None


@router.post("/trigger", response_model=SosReport, summary="Botón HELP ME")
async def sos_trigger(
    payload: SosTriggerIn,
    user=Depends(current_user),
    repo: ContactRepo = Depends(get_contact_repo),
    enhancer=Depends(get_enhancer),
    dispatcher=Depends(get_dispatcher),
):
    """
    Arma el mensaje (con IA si está disponible) y devuelve un enlace wa.me por contacto.
    El frontend abre cada `links[].url` en una pestaña nueva.
    """
    composer = SosComposer(repo, enhancer, dispatcher)
    locator = ClientReportedLocator(payload.location, payload.location_error)
    return await composer.trigger(user["sub"], locator)


@router.get("/preview", summary="A quién se avisaría")
async def sos_preview(user=Depends(current_user), repo: ContactRepo = Depends(get_contact_repo)):
    contacts = await repo.list_contacts(user["sub"], degrade=True)
    return {
        "default_message": settings.DEFAULT_DISTRESS_MESSAGE,
        "contacts": [{"id": c.id, "name": c.name} for c in contacts],
        "ready": bool(contacts),
    }
