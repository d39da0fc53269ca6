# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia.
#
# ESTRUCTURA:
# ├── interfaces.py      → Protocolo IStorage (puerto de almacenamiento)
# ├── base.py            → BaseStorage, MemoryStorage, JsonFileStorage
# ├── sqlite_storage.py  → SqliteStorage
# └── pos_repository.py  → Fachada: colecciones, valores por defecto, esquema
#
# Los servicios dependen de PosRepository, nunca del almacenamiento concreto.
# ==============================================================================

from swift_pos.repositories.interfaces import IStorage
from swift_pos.repositories.base import BaseStorage, MemoryStorage, JsonFileStorage
from swift_pos.repositories.sqlite_storage import SqliteStorage
from swift_pos.repositories.pos_repository import (
    COLLECTIONS,
    SCHEMA_VERSION,
    PosRepository,
)

__all__ = [
    # Interfaces
    'IStorage',

    # Almacenamientos
    'BaseStorage',
    'MemoryStorage',
    'JsonFileStorage',
    'SqliteStorage',

    # Fachada
    'COLLECTIONS',
    'SCHEMA_VERSION',
    'PosRepository',
]
