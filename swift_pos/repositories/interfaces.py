# ==============================================================================
# INTERFACES DE REPOSITORIOS - PUERTO DE ALMACENAMIENTO
# ==============================================================================
#
# Este archivo define los contratos (protocolos) de la capa de persistencia.
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - El motor de ventas y los servicios reciben el almacenamiento inyectado
#    - Memoria (tests), JSON (por defecto) o SQLite sin cambiar la lógica
#
# 2. SEMÁNTICA
#    - Lectura/reemplazo de colecciones completas (no hay update parcial)
#    - put_many escribe varias colecciones como una unidad (todo o nada)
#    - locked() delimita una sección de un solo escritor
#
# ==============================================================================

from typing import Any, ContextManager, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class IStorage(Protocol):
    """
    Interfaz del almacenamiento clave/valor por colección.
    Implementado por: MemoryStorage, JsonFileStorage, SqliteStorage.
    """

    def get(self, collection: str) -> Any:
        """Obtiene la colección completa (None si no existe)."""
        ...

    def put(self, collection: str, value: Any) -> None:
        """Reemplaza la colección completa."""
        ...

    def put_many(self, values: Dict[str, Any]) -> None:
        """Reemplaza varias colecciones de forma atómica."""
        ...

    def keys(self) -> List[str]:
        """Nombres de las colecciones almacenadas."""
        ...

    def locked(self) -> ContextManager[None]:
        """Sección crítica de un solo escritor."""
        ...
