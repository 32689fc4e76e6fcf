"""
Cadena de mejora del mensaje SOS (OpenAI).
- Pide al modelo un mensaje más claro + números de emergencia sugeridos.
- Nunca lanza: devuelve EnhancementResult "enhanced" o "degraded" con el motivo.
- Sin OPENAI_API_KEY la cadena siempre degrada ("not_configured").
"""
import logging
from typing import List, Literal, Optional

import anyio
from openai import APITimeoutError, AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError, field_validator

from ...core.config import settings

log = logging.getLogger("guardianlink.ai")

SYSTEM_SOS = (
    "You are an AI assistant designed to enhance SOS messages by suggesting relevant "
    "emergency service numbers. Answer only with a JSON object."
)

TEMPLATE_SOS = """
The user is currently at latitude: {latitude} and longitude: {longitude}.
Their distress message is: {distress_message}

Analyze the location and the content of the distress message to determine the most appropriate
emergency services to contact (e.g., police, fire, ambulance, coast guard).
Return the suggested numbers as a list of strings, and incorporate them into the enhanced message.
Keep the enhanced message clear and concise. Do not drop anything the user wrote.

Output format:
{{"enhancedMessage": "The enhanced SOS message with suggested numbers.", "suggestedNumbers": ["Emergency service numbers"]}}
"""


class EnhanceOut(BaseModel):
    """Respuesta esperada; si falta cualquiera de los dos campos, es un fallo."""
    enhancedMessage: str = Field(min_length=1)
    suggestedNumbers: List[str]

    @field_validator("enhancedMessage", mode="before")
    @classmethod
    def strip_message(cls, v):
        # "   " cuenta como mensaje vacío
        return v.strip() if isinstance(v, str) else v


class EnhancementResult(BaseModel):
    status: Literal["enhanced", "degraded"]
    message: Optional[str] = None
    suggested_numbers: List[str] = Field(default_factory=list)
    reason: Optional[str] = None

    @classmethod
    def enhanced(cls, message: str, suggested_numbers: List[str]) -> "EnhancementResult":
        return cls(status="enhanced", message=message, suggested_numbers=suggested_numbers)

    @classmethod
    def degraded(cls, reason: str) -> "EnhancementResult":
        return cls(status="degraded", reason=reason)

    @property
    def is_degraded(self) -> bool:
        return self.status == "degraded"


class NullEnhancer:
    async def enhance(self, latitude: float, longitude: float, distress_message: str) -> EnhancementResult:
        return EnhancementResult.degraded("not_configured")


class OpenAIEnhancer:
    def __init__(self, api_key: str, model: str, timeout_s: float, client: Optional[AsyncOpenAI] = None) -> None:
        self.model = model
        self.timeout_s = timeout_s
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)

    async def enhance(self, latitude: float, longitude: float, distress_message: str) -> EnhancementResult:
        prompt = TEMPLATE_SOS.format(
            latitude=latitude, longitude=longitude, distress_message=distress_message
        )
        try:
            with anyio.fail_after(self.timeout_s):
                chat = await self.client.chat.completions.create(
                    model=self.model,
                    temperature=0.2,
                    response_format={"type": "json_object"},
                    messages=[
                        {"role": "system", "content": SYSTEM_SOS},
                        {"role": "user", "content": prompt},
                    ],
                )
            raw = (chat.choices[0].message.content or "").strip()
            out = EnhanceOut.model_validate_json(raw)
        except (TimeoutError, APITimeoutError):
            return EnhancementResult.degraded("timeout")
        except (ValidationError, IndexError):
            return EnhancementResult.degraded("malformed_response")
        except OpenAIError as e:
            log.warning(f"[sos_enhance] api error: {e}")
            return EnhancementResult.degraded("api_error")

        numbers = [n.strip() for n in out.suggestedNumbers if n and n.strip()]
        return EnhancementResult.enhanced(out.enhancedMessage, numbers)


def build_enhancer():
    if not settings.OPENAI_API_KEY:
        log.info("OPENAI_API_KEY vacío: mejora del SOS desactivada")
        return NullEnhancer()
    return OpenAIEnhancer(settings.OPENAI_API_KEY, settings.SOS_AI_MODEL, settings.SOS_AI_TIMEOUT_S)
