# ==============================================================================
# ALMACENAMIENTO BASE - Memoria y archivos JSON
# ==============================================================================
# Implementaciones del puerto IStorage:
#   - MemoryStorage   → tests y sesiones efímeras
#   - JsonFileStorage → un archivo <colección>.json por colección
#
# ESCRITURA ATÓMICA (JSON):
#   - put(): archivo temporal + os.replace
#   - put_many(): escribe todos los temporales, registra un journal
#     (_transaction.json) y recién entonces reemplaza los archivos.
#     Si el proceso se interrumpe a mitad, al reabrir se completa lo
#     registrado en el journal (roll-forward). Sin journal, los
#     temporales sueltos se descartan.
# ==============================================================================

import copy
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from swift_pos.exceptions import StorageError

logger = logging.getLogger(__name__)


class BaseStorage(ABC):
    """
    Clase base abstracta para los almacenamientos.

    Cada instancia tiene su propio RLock: locked() lo expone para que el
    motor de ventas haga lectura-modificación-escritura sin intercalarse
    con otro hilo del mismo proceso.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Sección crítica de un solo escritor."""
        with self._lock:
            yield

    @abstractmethod
    def get(self, collection: str) -> Any:
        """Lee una colección. Retorna None si no existe."""

    @abstractmethod
    def put(self, collection: str, value: Any) -> None:
        """Reemplaza una colección."""

    @abstractmethod
    def put_many(self, values: Dict[str, Any]) -> None:
        """Reemplaza varias colecciones como una unidad."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Nombres de las colecciones existentes."""


class MemoryStorage(BaseStorage):
    """
    Almacenamiento en memoria.

    Lecturas y escrituras copian los datos: nadie puede modificar el
    estado guardado sin pasar por put().
    """

    def __init__(self, initial: Dict[str, Any] = None):
        super().__init__()
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, collection: str) -> Any:
        with self._lock:
            if collection not in self._data:
                return None
            return copy.deepcopy(self._data[collection])

    def put(self, collection: str, value: Any) -> None:
        with self._lock:
            self._data[collection] = copy.deepcopy(value)

    def put_many(self, values: Dict[str, Any]) -> None:
        staged = copy.deepcopy(values)
        with self._lock:
            self._data.update(staged)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())


class JsonFileStorage(BaseStorage):
    """
    Almacenamiento en archivos JSON, uno por colección.

    Estructura en disco:
        data_dir/
        ├── products.json
        ├── sales.json
        ├── ...
        └── _transaction.json   (solo durante un put_many)
    """

    JOURNAL_NAME = '_transaction.json'
    TMP_SUFFIX = '.tmp'

    def __init__(self, data_dir: str):
        """
        Inicializa el almacenamiento.

        Args:
            data_dir: Carpeta de datos (se crea si no existe)
        """
        super().__init__()
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)
        self._recover()

    # =========================================================================
    # RUTAS Y E/S DE BAJO NIVEL
    # =========================================================================

    def _path(self, collection: str) -> str:
        return os.path.join(self.data_dir, f'{collection}.json')

    @property
    def journal_path(self) -> str:
        return os.path.join(self.data_dir, self.JOURNAL_NAME)

    def _write_file(self, path: str, data: Any) -> None:
        """
        Escribe JSON a disco de forma atómica (temporal + rename).

        Args:
            path: Ruta final
            data: Datos serializables
        """
        temp_path = path + self.TMP_SUFFIX
        try:
            self._dump(temp_path, data)
            os.replace(temp_path, path)
        except Exception:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    def _dump(self, path: str, data: Any) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())

    # =========================================================================
    # RECUPERACIÓN
    # =========================================================================

    def _recover(self) -> None:
        """
        Completa un put_many interrumpido o descarta temporales huérfanos.
        """
        with self._lock:
            pending = []
            if os.path.exists(self.journal_path):
                try:
                    with open(self.journal_path, 'r', encoding='utf-8') as f:
                        pending = json.load(f).get('collections', [])
                except (json.JSONDecodeError, OSError) as e:
                    raise StorageError(
                        f"Journal de transacción ilegible: {e}",
                        path=self.journal_path
                    )

                for collection in pending:
                    final_path = self._path(collection)
                    temp_path = final_path + self.TMP_SUFFIX
                    if os.path.exists(temp_path):
                        os.replace(temp_path, final_path)
                os.remove(self.journal_path)
                logger.warning(
                    "[STORAGE] Transacción interrumpida completada: %s",
                    ', '.join(pending)
                )

            for name in os.listdir(self.data_dir):
                if name.endswith('.json' + self.TMP_SUFFIX):
                    os.remove(os.path.join(self.data_dir, name))
                    logger.warning("[STORAGE] Temporal huérfano descartado: %s", name)

    # =========================================================================
    # INTERFAZ IStorage
    # =========================================================================

    def get(self, collection: str) -> Any:
        path = self._path(collection)
        with self._lock:
            if not os.path.exists(path):
                return None
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                # No sembrar valores por defecto encima de un archivo dañado
                logger.error("[STORAGE] %s está corrupto: %s", path, e)
                raise StorageError(f"Archivo de datos corrupto: {path}", collection=collection)

    def put(self, collection: str, value: Any) -> None:
        with self._lock:
            self._write_file(self._path(collection), value)

    def put_many(self, values: Dict[str, Any]) -> None:
        with self._lock:
            staged = []
            try:
                for collection, value in values.items():
                    temp_path = self._path(collection) + self.TMP_SUFFIX
                    staged.append(collection)
                    self._dump(temp_path, value)
                self._write_file(self.journal_path, {'collections': staged})
            except Exception:
                for collection in staged:
                    temp_path = self._path(collection) + self.TMP_SUFFIX
                    if os.path.exists(temp_path):
                        os.remove(temp_path)
                raise

            # A partir de aquí la transacción está confirmada en el journal
            for collection in staged:
                final_path = self._path(collection)
                os.replace(final_path + self.TMP_SUFFIX, final_path)
            os.remove(self.journal_path)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(
                name[:-len('.json')]
                for name in os.listdir(self.data_dir)
                if name.endswith('.json') and name != self.JOURNAL_NAME
            )
