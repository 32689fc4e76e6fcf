# guardianlink/main.py
"""
App FastAPI: CORS, lifespan (startup/shutdown), routers, errores de dominio + middleware de trazas.
"""
import logging, time

# .env antes de importar cualquier router (settings se lee al importar)
from dotenv import load_dotenv, find_dotenv
load_dotenv(find_dotenv())

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .ai.chains.sos_enhance import build_enhancer
from .core.config import settings
from .core.errors import GuardianLinkError, LocationUnavailable
from .db.mongo import connect_to_mongo, disconnect_from_mongo
from .routes import auth, contacts, sos, users
from .services.session_context import SessionContext
from .telemetry.logging import setup_logging
from .telemetry.otel import setup_otel

setup_logging()
http_logger = logging.getLogger("guardianlink.http")

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_otel()
    connect_to_mongo()
    app.state.session_context = SessionContext()
    app.state.enhancer = build_enhancer()
    yield
    app.state.session_context.close()
    disconnect_from_mongo()

app = FastAPI(title="GuardianLink API", version="0.1.0", lifespan=lifespan)

# ---------------- CORS ----------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Errores de dominio ----------------
@app.exception_handler(GuardianLinkError)
async def domain_error(request: Request, exc: GuardianLinkError):
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, LocationUnavailable):
        body["kind"] = exc.kind
    return JSONResponse(status_code=exc.status_code, content=body)

# ---------------- Middleware de trazas ----------------
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        dur = round(time.time() - start, 4)
        http_logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {dur}s")
        return response
    except Exception as e:
        dur = round(time.time() - start, 4)
        http_logger.exception(f"{request.method} {request.url.path} EXC after {dur}s: {e}")
        raise

# ---------------- Healthcheck ----------------
@app.get("/health", tags=["misc"])
async def health():
    return {"ok": True}

# ---------------- Routers ----------------
app.include_router(auth.router,     prefix="/auth",     tags=["auth"])
app.include_router(users.router,    prefix="/users",    tags=["users"])
app.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
app.include_router(sos.router,      prefix="/sos",      tags=["sos"])
