# ==============================================================================
# API HTTP - Flask
# ==============================================================================
# Las rutas solo traducen HTTP ⇄ servicios. Toda la lógica vive en
# services/ y se obtiene del contenedor de dependencias.
#
# FORMATO DE RESPUESTA (siempre JSON, nunca HTML ni redirect):
#   éxito → {"ok": true, ...}
#   error → {"ok": false, "error": "<Tipo>", "message": "<texto>"}
#
# CÓDIGOS HTTP:
#   400 validación | 404 inexistente | 409 stock / pago | 500 almacenamiento o error inesperado
# ==============================================================================

import logging
from typing import Any, Dict

from flask import Blueprint, Flask, current_app, request
from werkzeug.exceptions import HTTPException

from swift_pos.app_container import AppContainer
from swift_pos.config import PosConfig
from swift_pos.exceptions import NotFound, PosError, ValidationError
from swift_pos.logging_setup import configure_logging

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')

EXTENSION_KEY = 'swift_pos'


def _container() -> AppContainer:
    return current_app.extensions[EXTENSION_KEY]


def _json() -> Dict[str, Any]:
    """Cuerpo JSON del request ({} si no llegó o no es un objeto)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _require(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or value == '':
        raise ValidationError(f"Falta el campo '{key}'", field=key)
    return value


# ═══════════════════════════════════════════════════════════════════════════
# CARRITO
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/cart', methods=['GET'])
def cart_view():
    """Ver contenido actual del carrito"""
    return {'ok': True, 'cart': _container().sale_engine.get_state()}


@api.route('/cart/add', methods=['POST'])
def cart_add():
    """
    Agregar producto al carrito (o sumar 1 si ya está).
    Espera JSON con: productId, discount (opcional)
    """
    data = _json()
    engine = _container().sale_engine
    line = engine.add_or_increment(_require(data, 'productId'), data.get('discount', 0))
    return {'ok': True, 'line': line.to_dict(), 'cart': engine.get_state()}


@api.route('/cart/remove', methods=['POST'])
def cart_remove():
    data = _json()
    engine = _container().sale_engine
    removed = engine.remove_line(_require(data, 'lineId'))
    return {'ok': True, 'removed': removed, 'cart': engine.get_state()}


@api.route('/cart/update', methods=['POST'])
def cart_update():
    """Espera JSON con: lineId, quantity, discount"""
    data = _json()
    engine = _container().sale_engine
    line_id = _require(data, 'lineId')
    line = engine.update_line(line_id, data.get('quantity'), data.get('discount', 0))
    if line is None:
        raise NotFound(f"Línea no encontrada: {line_id}", line_id=line_id)
    return {'ok': True, 'line': line.to_dict(), 'cart': engine.get_state()}


@api.route('/cart/discount', methods=['POST'])
def cart_discount():
    engine = _container().sale_engine
    engine.set_order_discount(_json().get('percent', 0))
    return {'ok': True, 'cart': engine.get_state()}


@api.route('/cart/tendered', methods=['POST'])
def cart_tendered():
    engine = _container().sale_engine
    engine.set_tendered_amount(_json().get('amount', 0))
    return {'ok': True, 'cart': engine.get_state()}


@api.route('/cart/clear', methods=['POST'])
def cart_clear():
    """Vaciar el carrito"""
    engine = _container().sale_engine
    engine.clear()
    return {'ok': True, 'cart': engine.get_state()}


@api.route('/cart/commit', methods=['POST'])
def cart_commit():
    """
    Confirmar la venta.
    Espera JSON con: customerType, paymentMethod, tendered (opcional), notes
    """
    data = _json()
    sale = _container().sale_engine.commit(
        customer_type=data.get('customerType') or 'walk-in',
        payment_method=data.get('paymentMethod') or 'cash',
        tendered_amount=data.get('tendered'),
        notes=data.get('notes') or '',
    )
    return {'ok': True, 'sale': sale.to_dict()}, 201


# ═══════════════════════════════════════════════════════════════════════════
# CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/products', methods=['GET'])
def products_list():
    """Filtros opcionales: ?q=texto&category=A&category=B"""
    products = _container().inventory_service.search_products(
        request.args.get('q', ''),
        request.args.getlist('category'),
    )
    return {'ok': True, 'products': [p.to_dict() for p in products]}


@api.route('/products', methods=['POST'])
def products_create():
    product = _container().inventory_service.create_product(_json())
    return {'ok': True, 'product': product.to_dict()}, 201


@api.route('/products/<product_id>', methods=['GET'])
def products_get(product_id):
    product = _container().inventory_service.get_product(product_id)
    if product is None:
        raise NotFound(f"Producto no encontrado: {product_id}", product_id=product_id)
    return {'ok': True, 'product': product.to_dict()}


@api.route('/products/<product_id>', methods=['PUT'])
def products_update(product_id):
    product = _container().inventory_service.update_product(product_id, _json())
    return {'ok': True, 'product': product.to_dict()}


@api.route('/products/<product_id>', methods=['DELETE'])
def products_delete(product_id):
    _container().inventory_service.delete_product(product_id)
    return {'ok': True}


@api.route('/categories', methods=['GET'])
def categories_list():
    return {'ok': True, 'categories': _container().inventory_service.list_categories()}


@api.route('/categories', methods=['POST'])
def categories_add():
    categories = _container().inventory_service.add_category(_json().get('name', ''))
    return {'ok': True, 'categories': categories}, 201


# ═══════════════════════════════════════════════════════════════════════════
# PROVEEDORES Y CLIENTES
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/suppliers', methods=['GET'])
def suppliers_list():
    suppliers = _container().contacts_service.list_suppliers()
    return {'ok': True, 'suppliers': [s.to_dict() for s in suppliers]}


@api.route('/suppliers', methods=['POST'])
def suppliers_create():
    supplier = _container().contacts_service.create_supplier(_json())
    return {'ok': True, 'supplier': supplier.to_dict()}, 201


@api.route('/suppliers/<supplier_id>', methods=['PUT'])
def suppliers_update(supplier_id):
    supplier = _container().contacts_service.update_supplier(supplier_id, _json())
    return {'ok': True, 'supplier': supplier.to_dict()}


@api.route('/suppliers/<supplier_id>', methods=['DELETE'])
def suppliers_delete(supplier_id):
    _container().contacts_service.delete_supplier(supplier_id)
    return {'ok': True}


@api.route('/customers', methods=['GET'])
def customers_list():
    customers = _container().contacts_service.list_customers()
    return {'ok': True, 'customers': [c.to_dict() for c in customers]}


@api.route('/customers', methods=['POST'])
def customers_create():
    customer = _container().contacts_service.create_customer(_json())
    return {'ok': True, 'customer': customer.to_dict()}, 201


@api.route('/customers/<customer_id>', methods=['PUT'])
def customers_update(customer_id):
    customer = _container().contacts_service.update_customer(customer_id, _json())
    return {'ok': True, 'customer': customer.to_dict()}


@api.route('/customers/<customer_id>', methods=['DELETE'])
def customers_delete(customer_id):
    _container().contacts_service.delete_customer(customer_id)
    return {'ok': True}


# ═══════════════════════════════════════════════════════════════════════════
# GASTOS Y PAGOS A PROVEEDORES
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/expenses', methods=['GET'])
def expenses_list():
    expenses = _container().expense_service.list_expenses()
    return {'ok': True, 'expenses': [e.to_dict() for e in expenses]}


@api.route('/expenses', methods=['POST'])
def expenses_create():
    expense = _container().expense_service.create_expense(_json())
    return {'ok': True, 'expense': expense.to_dict()}, 201


@api.route('/expenses/<expense_id>', methods=['PUT'])
def expenses_update(expense_id):
    expense = _container().expense_service.update_expense(expense_id, _json())
    return {'ok': True, 'expense': expense.to_dict()}


@api.route('/expenses/<expense_id>', methods=['DELETE'])
def expenses_delete(expense_id):
    _container().expense_service.delete_expense(expense_id)
    return {'ok': True}


@api.route('/suppliers/<supplier_id>/payments', methods=['GET'])
def supplier_payments(supplier_id):
    """Resumen de deuda + historial de pagos (más reciente primero)"""
    service = _container().expense_service
    return {
        'ok': True,
        'summary': service.supplier_payment_summary(supplier_id),
        'payments': [e.to_dict() for e in service.supplier_payment_history(supplier_id)],
    }


@api.route('/suppliers/<supplier_id>/payments', methods=['POST'])
def supplier_payments_add(supplier_id):
    """Espera JSON con: amount, date, notes (opcional)"""
    data = _json()
    payment = _container().expense_service.add_supplier_payment(
        supplier_id, data.get('amount'), data.get('date'), data.get('notes') or ''
    )
    return {'ok': True, 'payment': payment.to_dict()}, 201


# ═══════════════════════════════════════════════════════════════════════════
# DASHBOARD Y REPORTES
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/dashboard', methods=['GET'])
def dashboard():
    container = _container()
    return {
        'ok': True,
        'company': container.settings_service.get_company_info().to_dict(),
        'dashboard': container.stats_service.dashboard(),
    }


@api.route('/reports/quick', methods=['GET'])
def reports_quick():
    return {'ok': True, 'stats': _container().stats_service.quick_stats()}


@api.route('/reports/<report_type>', methods=['GET'])
def reports_generate(report_type):
    """Parámetros: ?start=YYYY-MM-DD&end=YYYY-MM-DD"""
    report = _container().stats_service.generate_report(
        report_type,
        request.args.get('start', ''),
        request.args.get('end', ''),
    )
    return {'ok': True, 'report': report}


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/settings/company', methods=['GET'])
def settings_company():
    return {'ok': True, 'company': _container().settings_service.get_company_info().to_dict()}


@api.route('/settings/company', methods=['PUT'])
def settings_company_save():
    info = _container().settings_service.save_company_info(_json())
    return {'ok': True, 'company': info.to_dict()}


@api.route('/settings/system', methods=['GET'])
def settings_system():
    return {'ok': True, 'settings': _container().settings_service.get_system_settings().to_dict()}


@api.route('/settings/system', methods=['PUT'])
def settings_system_save():
    settings = _container().settings_service.save_system_settings(_json())
    return {'ok': True, 'settings': settings.to_dict()}


# ═══════════════════════════════════════════════════════════════════════════
# RESPALDOS
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/backup/export', methods=['GET'])
def backup_export():
    return {'ok': True, 'backup': _container().backup_service.export_data()}


@api.route('/backup/import', methods=['POST'])
def backup_import():
    """Espera el documento de respaldo completo como cuerpo JSON"""
    counts = _container().backup_service.import_data(request.get_json(silent=True))
    return {'ok': True, 'imported': counts}


@api.route('/backup/reset', methods=['POST'])
def backup_reset():
    container = _container()
    container.backup_service.reset_data()
    container.sale_engine.clear()
    return {'ok': True}


# ═══════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════

def handle_pos_error(error: PosError):
    """Convierte cualquier PosError en respuesta JSON con su código HTTP."""
    if error.http_status >= 500:
        logger.error("[API] %s: %s", error.code, error.message)
    else:
        logger.debug("[API] %s: %s", error.code, error.message)
    return error.to_dict(), error.http_status


def handle_unexpected_error(error: Exception):
    """Cualquier otra excepción: 500 en JSON. Los errores HTTP de Flask pasan tal cual."""
    if isinstance(error, HTTPException):
        return {'ok': False, 'error': error.name, 'message': error.description}, error.code
    logger.exception("[API] Error inesperado: %s", error)
    return {
        'ok': False,
        'error': 'InternalError',
        'message': 'Error interno del servidor',
    }, 500


# ═══════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def create_app(config: PosConfig = None, container: AppContainer = None) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        config: Configuración (default: desde variables de entorno)
        container: Contenedor ya construido (tests); si se pasa, manda su config

    Returns:
        Aplicación lista para servir
    """
    if container is None:
        container = AppContainer(config or PosConfig.from_env())
    configure_logging(container.config.log_level)

    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions[EXTENSION_KEY] = container
    app.register_blueprint(api)
    app.register_error_handler(PosError, handle_pos_error)
    app.register_error_handler(Exception, handle_unexpected_error)

    logger.info(
        "[APP] Swift POS iniciado (almacenamiento: %s, stock estricto: %s)",
        container.config.storage_type, container.config.strict_stock
    )
    return app
