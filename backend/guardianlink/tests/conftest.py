# backend/guardianlink/tests/conftest.py
"""
Fixtures y helpers para pruebas end-to-end con FastAPI + pytest-asyncio.
Usa Mongo en memoria (mongomock) y una DB única por corrida; nunca llama a OpenAI.
"""
import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import mongomock
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

# ---- entorno de test (debe setearse ANTES de importar guardianlink.main) ----
TEST_DB_NAME = f"guardianlink_test_{uuid.uuid4().hex[:8]}"
os.environ.setdefault("MONGO_DB", TEST_DB_NAME)
os.environ["MONGO_URI"] = os.getenv("TEST_MONGO_URI", "mongomock://localhost")
os.environ["OPENAI_API_KEY"] = ""

# ---- asegurar imports absolutos 'guardianlink.*' ----
ROOT_DIR = Path(__file__).resolve().parents[1]   # .../backend/guardianlink
sys.path.insert(0, str(ROOT_DIR.parent))         # .../backend

from guardianlink.main import app  # noqa: E402

PASSWORD = "Secreta123"


@pytest_asyncio.fixture
async def async_client():
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    """DB en memoria aislada, para probar repos sin levantar la app."""
    return mongomock.MongoClient()[f"unit_{uuid.uuid4().hex[:8]}"]


# -------- Helpers --------
def fresh_fix(lat: float = 19.4326, lng: float = -99.1332) -> dict:
    return {
        "latitude": lat,
        "longitude": lng,
        "accuracy": 12.0,
        "captured_at": datetime.now(timezone.utc).isoformat(),
    }


async def _register(client: AsyncClient, *, display_name: str = "Zoe Test") -> str:
    email = f"test_{uuid.uuid4().hex[:8]}@example.com"
    payload = {"email": email, "password": PASSWORD, "display_name": display_name}
    r = await client.post("/auth/register", json=payload)
    assert r.status_code == 201, r.text
    return email


async def _login(client: AsyncClient, email: str, client_id: str | None = None):
    headers = {"X-Client-Id": client_id} if client_id else {}
    r = await client.post("/auth/login", json={"email": email, "password": PASSWORD}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body["user"]


@pytest_asyncio.fixture
async def user_auth(async_client: AsyncClient):
    email = await _register(async_client)
    headers, user = await _login(async_client, email)
    return {"email": email, "headers": headers, "uid": user["uid"]}


@pytest_asyncio.fixture
async def other_user_auth(async_client: AsyncClient):
    email = await _register(async_client, display_name="Otra Persona")
    headers, user = await _login(async_client, email)
    return {"email": email, "headers": headers, "uid": user["uid"]}


@pytest.fixture
def make_fix():
    return fresh_fix
