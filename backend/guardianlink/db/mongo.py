# guardianlink/db/mongo.py
import logging

from pymongo import MongoClient

from ..core.config import settings
from .indexes import ensure_indexes

log = logging.getLogger("guardianlink.db")

_client = None
_db = None

def connect_to_mongo():
    """
    Conecta a Mongo y crea índices. Lee MONGO_URI y MONGO_DB de settings.
    Se llama en startup (lifespan) y es SINCRÓNICO.
    Con MONGO_URI=mongomock://... usa un cliente en memoria (pruebas).
    """
    global _client, _db
    if _client:
        return _db

    uri = settings.MONGO_URI
    dbname = settings.MONGO_DB

    if uri.startswith("mongomock://"):
        import mongomock
        _client = mongomock.MongoClient()
    else:
        _client = MongoClient(uri, uuidRepresentation="standard", tz_aware=True)
    _db = _client[dbname]

    ensure_indexes(_db)
    log.info("Mongo conectado db=%s", dbname)
    return _db


def disconnect_from_mongo():
    """
    Cierra la conexión. Si la DB se llama guardianlink_test_*, la borra.
    """
    global _client, _db
    if _client:
        dbname = settings.MONGO_DB
        if dbname.startswith("guardianlink_test_"):
            _client.drop_database(dbname)
        _client.close()
    _client = None
    _db = None


def get_db():
    if _db is None:
        raise RuntimeError("MongoDB no inicializado. Llama connect_to_mongo() en startup.")
    return _db
