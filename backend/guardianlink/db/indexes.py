# guardianlink/db/indexes.py
"""
Creación de índices (síncrona, se llama desde connect_to_mongo).
"""
from pymongo import ASCENDING

def ensure_indexes(db):
    # users: email único
    db["users"].create_index([("email", ASCENDING)], unique=True)

    # sessions: búsqueda por usuario al cerrar sesión
    db["sessions"].create_index([("user_id", ASCENDING)])

    # contacts: listado por dueño ordenado por nombre
    db["contacts"].create_index([("user_id", ASCENDING), ("name", ASCENDING)])
