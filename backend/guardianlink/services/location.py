"""
Geolocalización del SOS.
El GPS vive en el dispositivo: el cliente manda el fix (o el error que obtuvo)
en la petición. Aquí se valida que sea fresco; nunca se guarda un fix entre SOS.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

import anyio
from pydantic import BaseModel

from ..core.errors import LocationErrorKind, LocationUnavailable

# tolerancia para relojes de dispositivo adelantados
CLOCK_SKEW_S = 5.0


class LocationFix(BaseModel):
    latitude: float
    longitude: float
    accuracy: Optional[float] = None   # metros
    captured_at: datetime


class Locator(Protocol):
    async def locate(self, *, max_age_s: float) -> LocationFix: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClientReportedLocator:
    """Convierte lo que reportó el navegador en un fix válido o en LocationUnavailable."""

    def __init__(
        self,
        fix: Optional[LocationFix] = None,
        error: Optional[LocationErrorKind] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.fix = fix
        self.error = error
        self.clock = clock

    async def locate(self, *, max_age_s: float) -> LocationFix:
        if self.error:
            raise LocationUnavailable(self.error, "reported by device")
        if self.fix is None:
            raise LocationUnavailable("position_unavailable", "no fix reported")

        fix = self.fix
        if not (-90.0 <= fix.latitude <= 90.0) or not (-180.0 <= fix.longitude <= 180.0):
            raise LocationUnavailable("position_unavailable", "coordinates out of range")

        captured = fix.captured_at
        if captured.tzinfo is None:
            captured = captured.replace(tzinfo=timezone.utc)
        age = (self.clock() - captured).total_seconds()
        if age > max_age_s:
            raise LocationUnavailable("position_unavailable", f"stale fix ({age:.1f}s old)")
        if age < -CLOCK_SKEW_S:
            raise LocationUnavailable("position_unavailable", "fix timestamp in the future")
        return fix


async def acquire_fix(locator: Locator, *, timeout_s: float, max_age_s: float) -> LocationFix:
    """Pide un fix fresco con espera acotada; si se agota, se abandona (sin reintento)."""
    try:
        with anyio.fail_after(timeout_s):
            return await locator.locate(max_age_s=max_age_s)
    except TimeoutError:
        raise LocationUnavailable("timeout", f"no fix after {timeout_s}s")
