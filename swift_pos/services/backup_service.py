# ==============================================================================
# SERVICIO DE RESPALDOS - Exportar / importar / reiniciar
# ==============================================================================
# El respaldo es un documento JSON con TODAS las colecciones:
#
#   {
#     "schemaVersion": 1,
#     "exportedAt": "2024-05-01T10:30:00",
#     "collections": {"products": [...], "sales": [...], ...}
#   }
#
# IMPORTAR reemplaza colección por colección (sin merge) en UNA escritura
# atómica. También acepta el formato plano {"products": [...], ...}.
# ==============================================================================

import json
import logging
import os
from datetime import datetime
from typing import Any, Callable, Dict

from swift_pos.exceptions import IncompatibleBackup
from swift_pos.repositories.pos_repository import (
    COLLECTIONS,
    SCHEMA_VERSION,
    PosRepository,
)

logger = logging.getLogger(__name__)


# Tipo esperado de cada colección en un respaldo
_LIST_COLLECTIONS = frozenset(['products', 'sales', 'suppliers', 'expenses', 'customers', 'categories'])
_RECORD_COLLECTIONS = frozenset(['companyInfo', 'systemSettings'])


class BackupService:
    """
    Servicio de respaldos del POS.

    Uso:
        backup_service = BackupService(repository)
        backup_service.export_to_file('respaldo.json')
        backup_service.import_from_file('respaldo.json')
    """

    def __init__(self, repository: PosRepository, clock: Callable[[], datetime] = None):
        """
        Inicializa el servicio.

        Args:
            repository: Fachada de persistencia
            clock: Función que retorna la hora actual (inyectable en tests)
        """
        self.repository = repository
        self._clock = clock or datetime.now

    # =========================================================================
    # EXPORTAR
    # =========================================================================

    def export_data(self) -> Dict[str, Any]:
        """
        Construye el documento de respaldo.

        Returns:
            {'schemaVersion', 'exportedAt', 'collections'}
        """
        return {
            'schemaVersion': SCHEMA_VERSION,
            'exportedAt': self._clock().isoformat(timespec='seconds'),
            'collections': self.repository.export_all(),
        }

    def export_to_file(self, path: str) -> str:
        """
        Escribe el respaldo a un archivo JSON.

        Args:
            path: Ruta destino (se crean las carpetas que falten)

        Returns:
            La ruta escrita
        """
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        document = self.export_data()
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
        logger.info("[BACKUP] Respaldo exportado: %s", path)
        return path

    # =========================================================================
    # IMPORTAR
    # =========================================================================

    @staticmethod
    def _extract_collections(document: Any) -> Dict[str, Any]:
        """
        Valida el documento y devuelve sus colecciones.

        Raises:
            IncompatibleBackup: Forma inválida, versión más nueva o tipos incorrectos
        """
        if not isinstance(document, dict):
            raise IncompatibleBackup("El respaldo debe ser un objeto JSON")

        if 'collections' in document:
            version = document.get('schemaVersion', SCHEMA_VERSION)
            if not isinstance(version, int) or version > SCHEMA_VERSION:
                raise IncompatibleBackup(
                    f"Versión de respaldo no soportada: {version}",
                    schema_version=version
                )
            collections = document['collections']
            if not isinstance(collections, dict):
                raise IncompatibleBackup("'collections' debe ser un objeto")
        else:
            collections = {k: v for k, v in document.items() if k in COLLECTIONS}
            if not collections:
                raise IncompatibleBackup("El respaldo no contiene colecciones conocidas")

        for name, value in collections.items():
            if name not in COLLECTIONS:
                raise IncompatibleBackup(f"Colección desconocida en el respaldo: {name}", collection=name)
            if name in _LIST_COLLECTIONS and not isinstance(value, list):
                raise IncompatibleBackup(f"'{name}' debe ser una lista", collection=name)
            if name in _RECORD_COLLECTIONS and not isinstance(value, dict):
                raise IncompatibleBackup(f"'{name}' debe ser un objeto", collection=name)
        return collections

    def import_data(self, document: Any) -> Dict[str, int]:
        """
        Reemplaza todos los datos con el contenido del respaldo.

        Las colecciones ausentes en el respaldo vuelven a su valor por
        defecto. Se valida todo antes de escribir.

        Args:
            document: Documento de respaldo (ver encabezado del módulo)

        Returns:
            {colección: cantidad de registros importados} para las listas
        """
        collections = self._extract_collections(document)
        self.repository.replace_all(collections)
        counts = {
            name: len(value) for name, value in collections.items()
            if name in _LIST_COLLECTIONS
        }
        logger.info("[BACKUP] Respaldo importado: %s", counts)
        return counts

    def import_from_file(self, path: str) -> Dict[str, int]:
        """
        Importa un respaldo desde archivo.

        Raises:
            IncompatibleBackup: El archivo no es JSON válido
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise IncompatibleBackup(f"El archivo no es JSON válido: {e}", path=path)
        return self.import_data(document)

    # =========================================================================
    # REINICIAR
    # =========================================================================

    def reset_data(self) -> None:
        """Borra todo y restaura los valores por defecto."""
        self.repository.reset()
        logger.warning("[BACKUP] Datos reiniciados a valores por defecto")
