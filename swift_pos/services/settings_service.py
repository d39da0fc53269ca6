# ==============================================================================
# SERVICIO DE CONFIGURACIÓN - Empresa y sistema
# ==============================================================================
# Ambos son registros únicos que se sobrescriben completos al guardar.
# ==============================================================================

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

from swift_pos.exceptions import ValidationError
from swift_pos.models.entities import CompanyInfo, SystemSettings
from swift_pos.repositories.pos_repository import PosRepository


def format_currency(amount: Any, currency: str = 'MMK') -> str:
    """
    Formatea un monto como moneda sin decimales.

    Args:
        amount: Monto (se redondea al entero, mitades hacia arriba)
        currency: Código de moneda

    Returns:
        Texto como 'MMK 1,235'
    """
    try:
        value = Decimal(str(amount))
    except ArithmeticError:
        value = Decimal(0)
    if not value.is_finite():
        value = Decimal(0)
    rounded = int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    return f"{currency} {rounded:,}"


class SettingsService:
    """Lectura y guardado de la configuración de empresa y sistema."""

    def __init__(self, repository: PosRepository):
        self.repository = repository

    def get_company_info(self) -> CompanyInfo:
        return self.repository.get_company_info()

    def save_company_info(self, data: Dict[str, Any]) -> CompanyInfo:
        """
        Sobrescribe los datos de la empresa.

        Raises:
            ValidationError: Nombre vacío
        """
        if not str(data.get('name') or '').strip():
            raise ValidationError("El nombre de la empresa es obligatorio", field='name')
        info = CompanyInfo.from_dict(data)
        self.repository.save_company_info(info)
        return info

    def get_system_settings(self) -> SystemSettings:
        return self.repository.get_system_settings()

    def save_system_settings(self, data: Dict[str, Any]) -> SystemSettings:
        """
        Sobrescribe las preferencias del sistema.

        Raises:
            ValidationError: Tasa de impuesto negativa o no numérica
        """
        try:
            tax_rate = float(data.get('taxRate', 0) or 0)
        except (TypeError, ValueError):
            raise ValidationError("Tasa de impuesto inválida", field='taxRate')
        if tax_rate < 0:
            raise ValidationError("La tasa de impuesto debe ser >= 0", field='taxRate')
        settings = SystemSettings.from_dict(data)
        self.repository.save_system_settings(settings)
        return settings

    def format_currency(self, amount: Any) -> str:
        """Formatea con la moneda configurada."""
        return format_currency(amount, self.get_system_settings().currency)
