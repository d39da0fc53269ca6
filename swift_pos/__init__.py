# ==============================================================================
# SWIFT POS - Núcleo de punto de venta
# ==============================================================================
# ESTRUCTURA:
# ├── config.py         → PosConfig (variables de entorno)
# ├── exceptions.py     → Errores del dominio (PosError y derivados)
# ├── logging_setup.py  → configure_logging()
# ├── models/           → Entidades (Product, CartLine, Sale, ...)
# ├── repositories/     → Almacenamientos y fachada PosRepository
# ├── services/         → Lógica de negocio (motor de ventas, reportes, ...)
# ├── app_container.py  → Inyección de dependencias
# └── main.py           → API HTTP (Flask)
# ==============================================================================

__version__ = '1.0.0'

from swift_pos.config import PosConfig
from swift_pos.exceptions import PosError
from swift_pos.app_container import AppContainer, get_container

__all__ = [
    '__version__',
    'PosConfig',
    'PosError',
    'AppContainer',
    'get_container',
]
