"""
Envío del SOS: un enlace wa.me por contacto.
El backend no entrega mensajes: arma los enlaces y el cliente abre cada uno
en su propia pestaña. No hay confirmación de recepción.
"""
import logging
import re
from decimal import Decimal
from typing import Iterable, List, Optional, Protocol
from urllib.parse import quote

from pydantic import BaseModel

from ..core.config import settings
from ..models.contact import ContactPublic

log = logging.getLogger("guardianlink.sos")

DIALABLE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")

# mismo conjunto sin escapar que encodeURIComponent del navegador
_URI_SAFE = "!~*'()"


def normalize_number(raw: str) -> str:
    """Quita todo lo que no sea dígito; conserva un '+' inicial si venía."""
    raw = (raw or "").strip()
    digits = re.sub(r"\D", "", raw)
    return "+" + digits if raw.startswith("+") else digits


def encode_message(text: str) -> str:
    return quote(text, safe=_URI_SAFE)


def _coord(x: float) -> str:
    """Como Number.prototype.toString: sin exponente salvo |x| < 1e-6."""
    x = float(x)
    if x == 0:
        return "0"
    s = repr(x)
    if abs(x) < 1e-6:
        mantissa, exp = s.split("e")
        return f"{mantissa}e{int(exp)}"
    s = format(Decimal(s), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def map_link(latitude: float, longitude: float, base: Optional[str] = None) -> str:
    return f"{base or settings.MAP_LINK_BASE}{_coord(latitude)},{_coord(longitude)}"


def whatsapp_link(number: str, message: str, base: Optional[str] = None) -> str:
    return f"{base or settings.WHATSAPP_BASE}{number}?text={encode_message(message)}"


class DispatchLink(BaseModel):
    contact_id: str
    name: str
    number: str
    url: Optional[str] = None
    opened: bool = False
    error: Optional[str] = None


class Dispatcher(Protocol):
    async def open(self, url: str) -> None: ...


class LinkCollector:
    """Dispatcher HTTP: guarda los enlaces para que el cliente los abra."""

    def __init__(self) -> None:
        self.urls: List[str] = []

    async def open(self, url: str) -> None:
        self.urls.append(url)


async def dispatch_all(
    contacts: Iterable[ContactPublic],
    message: str,
    dispatcher: Dispatcher,
    base: Optional[str] = None,
) -> List[DispatchLink]:
    """Abre un enlace por contacto; el fallo de uno no frena a los demás."""
    links: List[DispatchLink] = []
    for c in contacts:
        number = normalize_number(c.whatsapp_number)
        link = DispatchLink(contact_id=c.id, name=c.name, number=number)
        if not DIALABLE_RE.match(number):
            link.error = "invalid_number"
            log.warning("sos skip contact=%s: number not dialable", c.id)
            links.append(link)
            continue

        link.url = whatsapp_link(number, message, base)
        try:
            await dispatcher.open(link.url)
            link.opened = True
        except Exception as e:
            link.error = "open_failed"
            log.warning("sos open failed contact=%s: %s", c.id, e)
        links.append(link)
    return links
