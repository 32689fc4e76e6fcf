# guardianlink/services/sos_composer.py
r"""
Flujo "HELP ME" (una sola pasada, nada se persiste):

  IDLE -> LOCATING -> ENHANCING -> DISPATCHING -> DONE
     \-> ABORTED (sin usuario/contactos, store caído o sin ubicación)

ENHANCING nunca aborta: si la IA falla se usa el mensaje por defecto + mapa.
"""
import logging
from enum import Enum
from typing import List, Optional

import anyio
from pydantic import BaseModel, Field

from ..ai.chains.sos_enhance import EnhancementResult
from ..core.config import settings
from ..core.errors import LocationUnavailable, PreconditionFailed, StoreError
from ..models.contact import ContactRepo
from .dispatch import DispatchLink, Dispatcher, dispatch_all, map_link
from .location import Locator, acquire_fix

log = logging.getLogger("guardianlink.sos")

LOCATION_PREFIX = " My current location: "
NUMBERS_PREFIX = " Suggested emergency numbers: "


class SosState(str, Enum):
    IDLE = "idle"
    LOCATING = "locating"
    ENHANCING = "enhancing"
    DISPATCHING = "dispatching"
    DONE = "done"
    ABORTED = "aborted"


class SosReport(BaseModel):
    state: SosState
    message: str
    map_link: str
    latitude: float
    longitude: float
    enhanced: bool
    degraded_reason: Optional[str] = None
    suggested_numbers: List[str] = Field(default_factory=list)
    links: List[DispatchLink] = Field(default_factory=list)


def compose_message(default_message: str, link: str, result: EnhancementResult) -> str:
    if result.is_degraded or not result.message:
        return f"{default_message}{LOCATION_PREFIX}{link}"

    message = result.message
    if link not in message:
        message += f"{LOCATION_PREFIX}{link}"
    if result.suggested_numbers:
        message += NUMBERS_PREFIX + ", ".join(result.suggested_numbers)
    return message


class SosComposer:
    def __init__(
        self,
        contacts: ContactRepo,
        enhancer,
        dispatcher: Dispatcher,
        *,
        default_message: Optional[str] = None,
        location_timeout_s: Optional[float] = None,
        location_max_age_s: Optional[float] = None,
        ai_timeout_s: Optional[float] = None,
    ) -> None:
        self.contacts = contacts
        self.enhancer = enhancer
        self.dispatcher = dispatcher
        self.default_message = default_message or settings.DEFAULT_DISTRESS_MESSAGE
        self.location_timeout_s = location_timeout_s or settings.LOCATION_TIMEOUT_S
        self.location_max_age_s = location_max_age_s or settings.LOCATION_MAX_AGE_S
        self.ai_timeout_s = ai_timeout_s or settings.SOS_AI_TIMEOUT_S
        self.state = SosState.IDLE

    def _enter(self, state: SosState) -> None:
        log.info("sos %s -> %s", self.state.value, state.value)
        self.state = state

    async def _enhance(self, latitude: float, longitude: float) -> EnhancementResult:
        try:
            with anyio.fail_after(self.ai_timeout_s):
                return await self.enhancer.enhance(latitude, longitude, self.default_message)
        except TimeoutError:
            return EnhancementResult.degraded("timeout")
        except Exception:
            log.exception("enhancer raised; using default message")
            return EnhancementResult.degraded("error")

    async def trigger(self, user_id: Optional[str], locator: Locator) -> SosReport:
        if not user_id:
            self._enter(SosState.ABORTED)
            raise PreconditionFailed("User not logged in or no contacts available.")

        try:
            contacts = await self.contacts.list_contacts(user_id)
        except StoreError:
            self._enter(SosState.ABORTED)
            raise
        if not contacts:
            self._enter(SosState.ABORTED)
            raise PreconditionFailed("User not logged in or no contacts available.")

        self._enter(SosState.LOCATING)
        try:
            fix = await acquire_fix(
                locator, timeout_s=self.location_timeout_s, max_age_s=self.location_max_age_s
            )
        except LocationUnavailable as e:
            log.warning("sos aborted user=%s location=%s (%s)", user_id, e.kind, e.detail)
            self._enter(SosState.ABORTED)
            raise

        link = map_link(fix.latitude, fix.longitude)

        self._enter(SosState.ENHANCING)
        result = await self._enhance(fix.latitude, fix.longitude)
        if not result.is_degraded and not (result.message or "").strip():
            result = EnhancementResult.degraded("malformed_response")
        if result.is_degraded:
            log.warning("sos enhancement failed user=%s reason=%s", user_id, result.reason)
        message = compose_message(self.default_message, link, result)

        self._enter(SosState.DISPATCHING)
        links = await dispatch_all(contacts, message, self.dispatcher)

        self._enter(SosState.DONE)
        log.info("sos done user=%s opened=%d/%d", user_id, sum(l.opened for l in links), len(links))
        return SosReport(
            state=self.state,
            message=message,
            map_link=link,
            latitude=fix.latitude,
            longitude=fix.longitude,
            enhanced=not result.is_degraded,
            degraded_reason=result.reason,
            suggested_numbers=result.suggested_numbers if not result.is_degraded else [],
            links=links,
        )
