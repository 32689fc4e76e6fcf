"""
Errores de dominio.
- Los servicios lanzan estas excepciones; main.py las traduce a JSON + status HTTP.
- `message` es el texto que ve el usuario; `code` es estable para el frontend.
"""
from typing import Literal


class GuardianLinkError(Exception):
    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class InvalidArgument(GuardianLinkError):
    status_code = 400
    code = "invalid_argument"


class LimitExceeded(GuardianLinkError):
    status_code = 409
    code = "limit_exceeded"


class ContactNotFound(GuardianLinkError):
    status_code = 404
    code = "contact_not_found"


class IdentityError(GuardianLinkError):
    status_code = 401
    code = "identity_error"

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, code)
        if status_code:
            self.status_code = status_code


class PreconditionFailed(GuardianLinkError):
    status_code = 412
    code = "precondition_failed"


LocationErrorKind = Literal["permission_denied", "position_unavailable", "timeout"]

LOCATION_MESSAGES: dict[str, str] = {
    "permission_denied": "Location access denied. Please enable location services.",
    "position_unavailable": "Location unavailable. Please check your connection or signal.",
    "timeout": "Location request timed out. Please try again.",
}


class LocationUnavailable(GuardianLinkError):
    status_code = 422
    code = "location_unavailable"

    def __init__(self, kind: LocationErrorKind, detail: str | None = None) -> None:
        super().__init__(LOCATION_MESSAGES[kind])
        self.kind = kind
        # motivo técnico, solo para logs
        self.detail = detail or kind


class StoreError(GuardianLinkError):
    status_code = 503
    code = "store_error"
