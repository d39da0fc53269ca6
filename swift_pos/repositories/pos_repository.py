# ==============================================================================
# REPOSITORIO POS - Fachada de persistencia
# ==============================================================================
# Interfaz uniforme de lectura/escritura sobre el almacenamiento inyectado.
# Una colección por clave:
#   products, sales, suppliers, expenses, customers, categories,
#   companyInfo, systemSettings
#
# REGLAS:
#   - Lectura/reemplazo de la colección completa (sin update parcial)
#   - Primer acceso sin datos → se siembra el valor por defecto
#   - Sin validación: los servicios validan ANTES de llamar a put()
#   - Último escritor gana (un solo escritor por almacenamiento)
# ==============================================================================

import logging
from typing import Any, Dict, List

from swift_pos.exceptions import StorageError, UnknownCollection
from swift_pos.models.entities import (
    CompanyInfo,
    Customer,
    Expense,
    Product,
    Sale,
    Supplier,
    SystemSettings,
    default_collections,
)
from swift_pos.repositories.interfaces import IStorage

logger = logging.getLogger(__name__)


# Versión del formato persistido (se guarda en la colección 'meta')
SCHEMA_VERSION = 1
META_KEY = 'meta'

COLLECTIONS = (
    'products',
    'sales',
    'suppliers',
    'expenses',
    'customers',
    'categories',
    'companyInfo',
    'systemSettings',
)


class PosRepository:
    """
    Fachada de persistencia del POS.

    Uso:
        repo = PosRepository(MemoryStorage())
        products = repo.get_products()
        repo.put_many({'products': [...], 'sales': [...]})
    """

    def __init__(self, storage: IStorage):
        """
        Inicializa la fachada sobre un almacenamiento.

        Args:
            storage: Implementación de IStorage (memoria, JSON, SQLite)
        """
        self.storage = storage
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        meta = self.storage.get(META_KEY)
        if meta is None:
            self.storage.put(META_KEY, {'schemaVersion': SCHEMA_VERSION})
            return
        version = meta.get('schemaVersion', 0)
        if version > SCHEMA_VERSION:
            raise StorageError(
                f"Los datos usan el esquema v{version}, "
                f"esta versión soporta hasta v{SCHEMA_VERSION}",
                schema_version=version
            )

    @property
    def schema_version(self) -> int:
        meta = self.storage.get(META_KEY) or {}
        return meta.get('schemaVersion', SCHEMA_VERSION)

    @staticmethod
    def _check(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise UnknownCollection(f"Colección desconocida: {collection}", collection=collection)

    # =========================================================================
    # CONTRATO BASE: get / put
    # =========================================================================

    def get(self, collection: str) -> Any:
        """
        Obtiene una colección completa.

        Args:
            collection: Nombre de la colección

        Returns:
            Lista o registro; el valor por defecto si aún no existe
        """
        self._check(collection)
        value = self.storage.get(collection)
        if value is None:
            value = default_collections()[collection]
            self.storage.put(collection, value)
        return value

    def put(self, collection: str, value: Any) -> None:
        """
        Reemplaza una colección completa.

        Args:
            collection: Nombre de la colección
            value: Nuevo contenido
        """
        self._check(collection)
        self.storage.put(collection, value)

    def put_many(self, values: Dict[str, Any]) -> None:
        """
        Reemplaza varias colecciones como una unidad (todo o nada).

        Args:
            values: {colección: contenido}
        """
        for collection in values:
            self._check(collection)
        self.storage.put_many(values)

    def locked(self):
        """Sección crítica del almacenamiento (ver BaseStorage.locked)."""
        return self.storage.locked()

    # =========================================================================
    # SET COMPLETO (respaldo / restauración)
    # =========================================================================

    def export_all(self) -> Dict[str, Any]:
        """Devuelve todas las colecciones (sembrando las que falten)."""
        return {collection: self.get(collection) for collection in COLLECTIONS}

    def replace_all(self, collections: Dict[str, Any]) -> None:
        """
        Reemplaza el set completo de colecciones.
        Las colecciones ausentes vuelven a su valor por defecto.

        Args:
            collections: {colección: contenido}
        """
        defaults = default_collections()
        values = {
            collection: collections.get(collection, defaults[collection])
            for collection in COLLECTIONS
        }
        values[META_KEY] = {'schemaVersion': SCHEMA_VERSION}
        self.storage.put_many(values)

    def reset(self) -> None:
        """Restaura todas las colecciones a sus valores por defecto."""
        self.replace_all({})

    # =========================================================================
    # ACCESO TIPADO
    # =========================================================================

    def get_products(self) -> List[Product]:
        return [Product.from_dict(p) for p in self.get('products')]

    def save_products(self, products: List[Product]) -> None:
        self.put('products', [p.to_dict() for p in products])

    def get_sales(self) -> List[Sale]:
        return [Sale.from_dict(s) for s in self.get('sales')]

    def get_suppliers(self) -> List[Supplier]:
        return [Supplier.from_dict(s) for s in self.get('suppliers')]

    def get_customers(self) -> List[Customer]:
        return [Customer.from_dict(c) for c in self.get('customers')]

    def get_expenses(self) -> List[Expense]:
        return [Expense.from_dict(e) for e in self.get('expenses')]

    def get_categories(self) -> List[str]:
        return list(self.get('categories'))

    def save_categories(self, categories: List[str]) -> None:
        self.put('categories', list(categories))

    def get_company_info(self) -> CompanyInfo:
        return CompanyInfo.from_dict(self.get('companyInfo'))

    def save_company_info(self, info: CompanyInfo) -> None:
        self.put('companyInfo', info.to_dict())

    def get_system_settings(self) -> SystemSettings:
        return SystemSettings.from_dict(self.get('systemSettings'))

    def save_system_settings(self, settings: SystemSettings) -> None:
        self.put('systemSettings', settings.to_dict())
