# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Validar primero, escribir después
# 2. Las rutas (controllers) solo llaman a servicios
# 3. Los servicios NO conocen el tipo de almacenamiento (memoria/JSON/SQLite)
#
# ESTRUCTURA:
# ├── sale_engine.py       → Carrito, totales y confirmación de venta
# ├── inventory_service.py → Productos, búsqueda, categorías
# ├── contacts_service.py  → Proveedores y clientes
# ├── expense_service.py   → Gastos y pagos a proveedores
# ├── settings_service.py  → Empresa, sistema, formato de moneda
# ├── stats_service.py     → Dashboard y reportes
# └── backup_service.py    → Exportar / importar / reiniciar
# ==============================================================================

from swift_pos.services.sale_engine import SaleEngine
from swift_pos.services.inventory_service import InventoryService
from swift_pos.services.contacts_service import ContactsService, resolve_customer_name
from swift_pos.services.expense_service import ExpenseService
from swift_pos.services.settings_service import SettingsService, format_currency
from swift_pos.services.stats_service import StatsService
from swift_pos.services.backup_service import BackupService

__all__ = [
    'SaleEngine',
    'InventoryService',
    'ContactsService',
    'resolve_customer_name',
    'ExpenseService',
    'SettingsService',
    'format_currency',
    'StatsService',
    'BackupService',
]
