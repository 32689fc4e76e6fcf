"""
Configuración central de la app (fuente única de verdad).
Lee variables de entorno y expone un objeto Settings tipado.
"""
import os
from pydantic import BaseModel, Field


def _csv(name: str, default: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


class Settings(BaseModel):
    MONGO_URI: str = Field(default_factory=lambda: os.getenv("MONGO_URI", "mongodb://localhost:27017"))
    MONGO_DB: str  = Field(default_factory=lambda: os.getenv("MONGO_DB", "guardianlink"))
    JWT_SECRET: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", "changeme"))
    JWT_EXPIRES_MIN: int = Field(default_factory=lambda: int(os.getenv("JWT_EXPIRES_MIN", "60")))
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: _csv("CORS_ORIGINS", "*"))

    # Contactos
    MAX_CONTACTS: int = Field(default_factory=lambda: int(os.getenv("MAX_CONTACTS", "6")))

    # IA (mejora del mensaje SOS)
    OPENAI_API_KEY: str = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    SOS_AI_MODEL: str = Field(default_factory=lambda: os.getenv("SOS_AI_MODEL", "gpt-4.1-mini"))
    SOS_AI_TIMEOUT_S: float = Field(default_factory=lambda: float(os.getenv("SOS_AI_TIMEOUT_S", "10")))

    # Geolocalización
    LOCATION_TIMEOUT_S: float = Field(default_factory=lambda: float(os.getenv("LOCATION_TIMEOUT_S", "10")))
    LOCATION_MAX_AGE_S: float = Field(default_factory=lambda: float(os.getenv("LOCATION_MAX_AGE_S", "10")))

    # Mensaje y enlaces
    DEFAULT_DISTRESS_MESSAGE: str = Field(
        default_factory=lambda: os.getenv("DEFAULT_DISTRESS_MESSAGE", "⚠️ I'm in danger. Please help me!")
    )
    MAP_LINK_BASE: str = Field(default_factory=lambda: os.getenv("MAP_LINK_BASE", "https://maps.google.com/?q="))
    WHATSAPP_BASE: str = Field(default_factory=lambda: os.getenv("WHATSAPP_BASE", "https://wa.me/"))


settings = Settings()
