# ==============================================================================
# ALMACENAMIENTO SQLITE - Base de datos embebida
# ==============================================================================
# Una fila por colección en la tabla `collections` (payload JSON).
# put_many() corre dentro de una sola transacción SQLite: todo o nada.
# ==============================================================================

import json
import logging
import os
import sqlite3
from typing import Any, Dict, List

from swift_pos.exceptions import StorageError
from swift_pos.repositories.base import BaseStorage

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS collections (
  name        TEXT PRIMARY KEY,
  payload     TEXT NOT NULL,
  updated_utc TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
)
"""


class SqliteStorage(BaseStorage):
    """
    Almacenamiento sobre SQLite.

    Uso:
        storage = SqliteStorage('data/swift_pos.db')
        storage.put_many({'products': [...], 'sales': [...]})
    """

    def __init__(self, db_path: str):
        """
        Abre (o crea) la base de datos.

        Args:
            db_path: Ruta al archivo .db
        """
        super().__init__()
        self.db_path = db_path
        directory = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(directory, exist_ok=True)
        self._conn = self._connect()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute(SCHEMA)
        conn.commit()
        return conn

    def close(self) -> None:
        """Cierra la conexión."""
        with self._lock:
            self._conn.close()

    def get(self, collection: str) -> Any:
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM collections WHERE name = ?", (collection,)
            ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            logger.error("[STORAGE] Colección %s corrupta en %s: %s", collection, self.db_path, e)
            raise StorageError(f"Colección corrupta: {collection}", collection=collection)

    def put(self, collection: str, value: Any) -> None:
        self.put_many({collection: value})

    def put_many(self, values: Dict[str, Any]) -> None:
        rows = [
            (name, json.dumps(value, ensure_ascii=False))
            for name, value in values.items()
        ]
        with self._lock:
            try:
                with self._conn:
                    self._conn.executemany(
                        "INSERT INTO collections (name, payload) VALUES (?, ?) "
                        "ON CONFLICT(name) DO UPDATE SET payload = excluded.payload, "
                        "updated_utc = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')",
                        rows,
                    )
            except sqlite3.Error as e:
                raise StorageError(f"Error escribiendo en SQLite: {e}")

    def keys(self) -> List[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT name FROM collections ORDER BY name"
            ).fetchall()
        return [row[0] for row in rows]
