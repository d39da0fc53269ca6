# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# del almacenamiento, el repositorio y los servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (MemoryStorage en lugar de archivos)
#   - Cambiar de almacenamiento sin tocar servicios
#
# ALMACENAMIENTO (PosConfig.storage_type):
#   json   → JsonFileStorage(data_dir)
#   sqlite → SqliteStorage(data_dir/swift_pos.db)
#   memory → MemoryStorage()
# ==============================================================================

import logging
from datetime import datetime
from typing import Callable, Optional

from swift_pos.config import PosConfig
from swift_pos.repositories import (
    IStorage,
    JsonFileStorage,
    MemoryStorage,
    PosRepository,
    SqliteStorage,
)
from swift_pos.services import (
    BackupService,
    ContactsService,
    ExpenseService,
    InventoryService,
    SaleEngine,
    SettingsService,
    StatsService,
)

logger = logging.getLogger(__name__)


def build_storage(config: PosConfig) -> IStorage:
    """
    Crea el almacenamiento indicado por la configuración.

    Args:
        config: Configuración de la aplicación

    Returns:
        Implementación de IStorage
    """
    if config.storage_type == 'memory':
        return MemoryStorage()
    if config.storage_type == 'sqlite':
        return SqliteStorage(config.sqlite_path)
    return JsonFileStorage(config.data_dir)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Cada servicio se crea una sola vez (lazy) y todos comparten el mismo
    repositorio. El motor de ventas es único por contenedor: un carrito
    por terminal.

    Uso:
        container = AppContainer(PosConfig.from_env())
        engine = container.sale_engine
        stats = container.stats_service
    """

    def __init__(
        self,
        config: PosConfig = None,
        storage: IStorage = None,
        clock: Callable[[], datetime] = None
    ):
        """
        Inicializa el contenedor.

        Args:
            config: Configuración (default: desde variables de entorno)
            storage: Almacenamiento ya construido (ignora config.storage_type)
            clock: Función que retorna la hora actual (inyectable en tests)
        """
        self.config = config or PosConfig.from_env()
        self._storage = storage
        self._clock = clock

        # Inicialización diferida
        self._repository: Optional[PosRepository] = None
        self._sale_engine: Optional[SaleEngine] = None
        self._inventory_service: Optional[InventoryService] = None
        self._contacts_service: Optional[ContactsService] = None
        self._expense_service: Optional[ExpenseService] = None
        self._settings_service: Optional[SettingsService] = None
        self._stats_service: Optional[StatsService] = None
        self._backup_service: Optional[BackupService] = None

    # =========================================================================
    # PERSISTENCIA
    # =========================================================================

    @property
    def storage(self) -> IStorage:
        """Almacenamiento (singleton)."""
        if self._storage is None:
            self._storage = build_storage(self.config)
            logger.info(
                "[CONTAINER] Almacenamiento %s en %s",
                self.config.storage_type, self.config.data_dir
            )
        return self._storage

    @property
    def repository(self) -> PosRepository:
        """Fachada de persistencia (singleton)."""
        if self._repository is None:
            self._repository = PosRepository(self.storage)
        return self._repository

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def sale_engine(self) -> SaleEngine:
        """Motor de ventas (singleton)."""
        if self._sale_engine is None:
            self._sale_engine = SaleEngine(
                self.repository,
                strict_stock=self.config.strict_stock,
                clock=self._clock
            )
        return self._sale_engine

    @property
    def inventory_service(self) -> InventoryService:
        """Servicio de inventario (singleton)."""
        if self._inventory_service is None:
            self._inventory_service = InventoryService(self.repository)
        return self._inventory_service

    @property
    def contacts_service(self) -> ContactsService:
        """Servicio de contactos (singleton)."""
        if self._contacts_service is None:
            self._contacts_service = ContactsService(self.repository)
        return self._contacts_service

    @property
    def expense_service(self) -> ExpenseService:
        """Servicio de gastos (singleton)."""
        if self._expense_service is None:
            self._expense_service = ExpenseService(self.repository)
        return self._expense_service

    @property
    def settings_service(self) -> SettingsService:
        """Servicio de configuración (singleton)."""
        if self._settings_service is None:
            self._settings_service = SettingsService(self.repository)
        return self._settings_service

    @property
    def stats_service(self) -> StatsService:
        """Servicio de estadísticas (singleton)."""
        if self._stats_service is None:
            self._stats_service = StatsService(
                self.repository,
                low_stock_threshold=self.config.low_stock_threshold,
                clock=self._clock
            )
        return self._stats_service

    @property
    def backup_service(self) -> BackupService:
        """Servicio de respaldos (singleton)."""
        if self._backup_service is None:
            self._backup_service = BackupService(self.repository, clock=self._clock)
        return self._backup_service


# ==============================================================================
# INSTANCIA GLOBAL
# ==============================================================================

_container: Optional[AppContainer] = None


def get_container(config: PosConfig = None) -> AppContainer:
    """
    Obtiene la instancia global del contenedor.

    Args:
        config: Configuración (solo se usa en la primera llamada)

    Returns:
        AppContainer singleton
    """
    global _container
    if _container is None:
        _container = AppContainer(config)
    return _container


def reset_container() -> None:
    """Descarta la instancia global (útil para tests)."""
    global _container
    _container = None
