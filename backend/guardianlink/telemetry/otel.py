"""
OpenTelemetry (opcional):
- Si TELEMETRY_ENABLED=true y OTEL_EXPORTER_OTLP_ENDPOINT está definido,
  se inicializa la traza básica.
- No se envían PII (ni números ni textos del SOS); usa atributos genéricos.
"""
import logging
import os

log = logging.getLogger("guardianlink.telemetry")

def setup_otel() -> bool:
    enabled = os.getenv("TELEMETRY_ENABLED", "false").lower() == "true"
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")
    if not enabled or not endpoint:
        return False

    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        resource = Resource.create({"service.name": "guardianlink-api"})
        provider = TracerProvider(resource=resource)
        span_exporter = OTLPSpanExporter(endpoint=endpoint)
        provider.add_span_processor(BatchSpanProcessor(span_exporter))
        trace.set_tracer_provider(provider)
    except Exception:
        # No romper la app si falla OTEL
        log.warning("OpenTelemetry no disponible; se sigue sin trazas", exc_info=True)
        return False
    log.info("OpenTelemetry activo endpoint=%s", endpoint)
    return True
