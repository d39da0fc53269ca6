# ==============================================================================
# CONFIGURACIÓN
# ==============================================================================
# Toda la configuración se lee de variables de entorno con valores por
# defecto seguros para desarrollo local.
#
#   POS_DATA_DIR              Carpeta de datos (default: ./data)
#   POS_STORAGE               json | sqlite | memory (default: json)
#   POS_STRICT_STOCK          Re-validar stock al confirmar venta (default: false)
#   POS_LOG_LEVEL             Nivel de logging (default: INFO)
#   POS_LOW_STOCK_THRESHOLD   Umbral de stock bajo (default: 10)
# ==============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from swift_pos.exceptions import ValidationError


VALID_STORAGE_TYPES = frozenset(['json', 'sqlite', 'memory'])

_TRUE_VALUES = frozenset(['1', 'true', 'yes', 'on', 'si', 'sí'])


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value == '':
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class PosConfig:
    """
    Configuración de la aplicación.

    Attributes:
        data_dir: Carpeta donde viven los archivos de datos
        storage_type: Tipo de almacenamiento (json, sqlite, memory)
        strict_stock: Si True, la venta re-valida stock antes de confirmar
        log_level: Nivel de logging
        low_stock_threshold: Stock por debajo del cual se alerta
    """
    data_dir: str = 'data'
    storage_type: str = 'json'
    strict_stock: bool = False
    log_level: str = 'INFO'
    low_stock_threshold: int = 10

    def __post_init__(self):
        self.storage_type = (self.storage_type or 'json').lower()
        if self.storage_type not in VALID_STORAGE_TYPES:
            raise ValidationError(
                f"Tipo de almacenamiento inválido: {self.storage_type}",
                field='storage_type'
            )

    @property
    def sqlite_path(self) -> str:
        """Ruta del archivo SQLite cuando storage_type='sqlite'."""
        return os.path.join(self.data_dir, 'swift_pos.db')

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> 'PosConfig':
        """
        Construye la configuración desde variables de entorno.

        Args:
            environ: Mapeo de variables (default: os.environ)

        Returns:
            Instancia de PosConfig
        """
        env = os.environ if environ is None else environ
        try:
            threshold = int(env.get('POS_LOW_STOCK_THRESHOLD', '10'))
        except ValueError:
            threshold = 10
        return cls(
            data_dir=env.get('POS_DATA_DIR', 'data'),
            storage_type=env.get('POS_STORAGE', 'json'),
            strict_stock=_to_bool(env.get('POS_STRICT_STOCK')),
            log_level=env.get('POS_LOG_LEVEL', 'INFO').upper(),
            low_stock_threshold=threshold,
        )
