# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses, independientes del almacenamiento
# (JSON, SQLite o memoria).
# ==============================================================================

from .entities import (
    # Constantes
    UNKNOWN_NAME,
    NOT_AVAILABLE,
    CUSTOMER_WALK_IN,
    CUSTOMER_ONLINE,
    RESERVED_CUSTOMER_NAMES,
    EXPENSE_SUPPLIER_PAYMENT,
    EXPENSE_CREDIT_PAYMENT,
    DEFAULT_CATEGORIES,
    LOW_STOCK_THRESHOLD,

    # Inventario
    Product,

    # Carrito y ventas
    CartLine,
    Sale,

    # Contactos y gastos
    Supplier,
    Customer,
    Expense,

    # Configuración
    CompanyInfo,
    SystemSettings,

    # Helpers
    calculate_line_total,
    default_collections,
    generate_id,
)

__all__ = [
    'UNKNOWN_NAME',
    'NOT_AVAILABLE',
    'CUSTOMER_WALK_IN',
    'CUSTOMER_ONLINE',
    'RESERVED_CUSTOMER_NAMES',
    'EXPENSE_SUPPLIER_PAYMENT',
    'EXPENSE_CREDIT_PAYMENT',
    'DEFAULT_CATEGORIES',
    'LOW_STOCK_THRESHOLD',
    'Product',
    'CartLine',
    'Sale',
    'Supplier',
    'Customer',
    'Expense',
    'CompanyInfo',
    'SystemSettings',
    'calculate_line_total',
    'default_collections',
    'generate_id',
]
