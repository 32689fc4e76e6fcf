"""
Configuración de logging.
- Nivel INFO por defecto; DEBUG en desarrollo (LOG_LEVEL).
- Formato con timestamps y nombre del logger.
- Integra con Uvicorn para no duplicar.
"""
import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

def setup_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("guardianlink").setLevel(level)
    # Ajusta loggers de uvicorn para no duplicar formato
    for uv_logger in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(uv_logger).setLevel(level)
