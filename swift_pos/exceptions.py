# ==============================================================================
# ERRORES DEL DOMINIO
# ==============================================================================
# Todas las fallas de validación se reportan como excepciones tipadas.
# Se lanzan SIEMPRE antes de tocar el almacenamiento: validar primero,
# escribir después. La capa HTTP las convierte en {'ok': False, ...}.
# ==============================================================================

from typing import Any, Dict, Optional


class PosError(Exception):
    """
    Error base del sistema POS.

    Attributes:
        code: Código estable del error (ej: 'OutOfStock')
        message: Mensaje legible para el usuario
        details: Datos adicionales (disponible, solicitado, etc.)
    """

    code = 'PosError'
    http_status = 400

    def __init__(self, message: str = '', **details: Any):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para respuestas JSON."""
        d = {'ok': False, 'error': self.code, 'message': self.message}
        if self.details:
            d['details'] = self.details
        return d


# ==============================================================================
# ERRORES DEL CARRITO Y LA VENTA
# ==============================================================================

class OutOfStock(PosError):
    """El producto no tiene stock (stock < 1)."""
    code = 'OutOfStock'
    http_status = 409


class InsufficientStock(PosError):
    """La cantidad pedida supera el stock actual."""
    code = 'InsufficientStock'
    http_status = 409


class InvalidQuantity(PosError):
    code = 'InvalidQuantity'


class InvalidDiscount(PosError):
    code = 'InvalidDiscount'


class EmptyCart(PosError):
    code = 'EmptyCart'


class InsufficientPayment(PosError):
    """El monto entregado es menor al total de la orden."""
    code = 'InsufficientPayment'
    http_status = 409


class ProductNotFound(PosError):
    code = 'ProductNotFound'
    http_status = 404


# ==============================================================================
# ERRORES DE CATÁLOGO, REPORTES Y PERSISTENCIA
# ==============================================================================

class ValidationError(PosError):
    """Datos de entrada inválidos (formularios de producto, gasto, etc.)."""
    code = 'ValidationError'

    def __init__(self, message: str = '', field: Optional[str] = None, **details: Any):
        if field:
            details['field'] = field
        super().__init__(message, **details)
        self.field = field


class NotFound(PosError):
    """Registro inexistente al editar/eliminar por ID."""
    code = 'NotFound'
    http_status = 404


class InvalidDateRange(PosError):
    code = 'InvalidDateRange'


class InvalidReportType(PosError):
    code = 'InvalidReportType'


class UnknownCollection(PosError):
    code = 'UnknownCollection'
    http_status = 500


class IncompatibleBackup(PosError):
    """El respaldo no tiene la forma esperada o su versión es más nueva."""
    code = 'IncompatibleBackup'


class StorageError(PosError):
    code = 'StorageError'
    http_status = 500
