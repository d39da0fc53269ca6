# ==============================================================================
# SERVICIO DE ESTADÍSTICAS - Dashboard y reportes
# ==============================================================================
# Funciones puras sobre listas de entidades. Dashboard y reportes usan
# las MISMAS funciones, así que ambos siempre coinciden.
#
# REGLAS:
#   - Rango de fechas inclusivo, comparando texto ISO (YYYY-MM-DD)
#   - Lista vacía → ceros / listas vacías, nunca error
#   - Nombre de producto: el vigente; si fue eliminado, el snapshot de
#     la línea; si no hay ninguno, 'Unknown'
#   - Ordenamientos estables (empates conservan el orden de aparición)
# ==============================================================================

from collections import OrderedDict, defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from swift_pos.exceptions import InvalidDateRange, InvalidReportType
from swift_pos.models.entities import (
    EXPENSE_CREDIT_PAYMENT,
    EXPENSE_SUPPLIER_PAYMENT,
    LOW_STOCK_THRESHOLD,
    NOT_AVAILABLE,
    UNKNOWN_NAME,
    Expense,
    Product,
    Sale,
    Supplier,
)
from swift_pos.repositories.pos_repository import PosRepository


MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

UNCATEGORIZED = 'Uncategorized'

REPORT_TYPES = ('sales', 'inventory', 'profit', 'expenses')


def _parse_date(value: str) -> Optional[date]:
    """
    Parsea una fecha ISO (acepta 'YYYY-MM-DD' o un datetime ISO).
    Retorna None si no puede parsear.
    """
    if not value:
        return None
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def _product_names(products: Iterable[Product]) -> Dict[str, str]:
    return {p.id: p.name for p in products}


# ==============================================================================
# FILTROS Y TOTALES
# ==============================================================================

def sales_in_range(sales: List[Sale], start: str, end: str) -> List[Sale]:
    """Ventas con start <= fecha <= end (inclusivo)."""
    return [s for s in sales if start <= s.date <= end]


def expenses_in_range(expenses: List[Expense], start: str, end: str) -> List[Expense]:
    """Gastos con start <= fecha <= end (inclusivo)."""
    return [e for e in expenses if start <= e.date <= end]


def total_sales(sales: Iterable[Sale]) -> float:
    return sum(s.total for s in sales)


def profit_in_range(sales: Iterable[Sale]) -> float:
    """Suma de la ganancia registrada en cada venta."""
    return sum(s.profit for s in sales)


def inventory_valuation(products: Iterable[Product]) -> float:
    """Σ buyingPrice × stock."""
    return sum(p.inventory_value for p in products)


def low_stock(
    products: Iterable[Product],
    threshold: int = LOW_STOCK_THRESHOLD,
    limit: Optional[int] = None
) -> List[Product]:
    """
    Productos con stock < threshold, de menor a mayor stock.

    Args:
        products: Catálogo
        threshold: Umbral (exclusivo)
        limit: Máximo de resultados (None = todos)
    """
    items = sorted((p for p in products if p.stock < threshold), key=lambda p: p.stock)
    return items if limit is None else items[:limit]


# ==============================================================================
# RANKINGS DE PRODUCTOS
# ==============================================================================

def product_sales(sales: Iterable[Sale]) -> Dict[str, Dict[str, Any]]:
    """
    Cantidad y recaudación por producto.

    Returns:
        {productId: {'name', 'quantity', 'revenue'}} en orden de primera
        aparición. 'name' es el snapshot de la primera línea vista.
    """
    totals: Dict[str, Dict[str, Any]] = OrderedDict()
    for sale in sales:
        for item in sale.items:
            entry = totals.get(item.product_id)
            if entry is None:
                entry = totals[item.product_id] = {
                    'name': item.name, 'quantity': 0, 'revenue': 0.0
                }
            entry['quantity'] += item.quantity
            entry['revenue'] += item.total
    return totals


def _ranked(sales: Iterable[Sale], products: Iterable[Product]) -> List[Dict[str, Any]]:
    names = _product_names(products)
    return [
        {
            'productId': product_id,
            'name': names.get(product_id) or data['name'] or UNKNOWN_NAME,
            'quantity': data['quantity'],
            'revenue': data['revenue'],
        }
        for product_id, data in product_sales(sales).items()
    ]


def best_selling(
    sales: Iterable[Sale],
    products: Iterable[Product],
    limit: Optional[int] = 10
) -> List[Dict[str, Any]]:
    """Productos más vendidos por cantidad, de mayor a menor."""
    items = sorted(_ranked(sales, products), key=lambda i: i['quantity'], reverse=True)
    return items if limit is None else items[:limit]


def least_selling(
    sales: Iterable[Sale],
    products: Iterable[Product],
    limit: Optional[int] = 10
) -> List[Dict[str, Any]]:
    """Productos vendidos (cantidad > 0) de menor a mayor cantidad."""
    items = sorted(
        (i for i in _ranked(sales, products) if i['quantity'] > 0),
        key=lambda i: i['quantity']
    )
    return items if limit is None else items[:limit]


# ==============================================================================
# SERIES TEMPORALES
# ==============================================================================

def monthly_totals(
    records: Iterable[Any],
    year: int,
    field: str
) -> List[float]:
    """
    Totales por mes del año indicado.

    Args:
        records: Ventas o gastos (con atributo 'date')
        year: Año a considerar
        field: Atributo a sumar (total, profit, amount)

    Returns:
        Lista de 12 totales (enero..diciembre)
    """
    totals = [0.0] * 12
    for record in records:
        parsed = _parse_date(record.date)
        if parsed and parsed.year == year:
            totals[parsed.month - 1] += getattr(record, field, 0) or 0
    return totals


def monthly_category_totals(expenses: Iterable[Expense], year: int) -> Dict[str, List[float]]:
    """
    Gastos por categoría y mes. Categoría vacía → 'Uncategorized'.

    Returns:
        {categoría: [12 totales]} en orden de primera aparición
    """
    totals: Dict[str, List[float]] = OrderedDict()
    for expense in expenses:
        parsed = _parse_date(expense.date)
        if not parsed or parsed.year != year:
            continue
        category = expense.category or UNCATEGORIZED
        if category not in totals:
            totals[category] = [0.0] * 12
        totals[category][parsed.month - 1] += expense.amount
    return totals


def sales_by_category(sales: Iterable[Sale], products: Iterable[Product]) -> Dict[str, float]:
    """
    Recaudación por categoría del producto vigente.
    Las líneas de productos eliminados no se cuentan.
    """
    categories = {p.id: p.category for p in products}
    totals: Dict[str, float] = OrderedDict()
    for sale in sales:
        for item in sale.items:
            if item.product_id in categories:
                category = categories[item.product_id]
                totals[category] = totals.get(category, 0.0) + item.total
    return totals


def daily_sales(sales: Iterable[Sale], end_date: date, days: int = 7) -> List[Dict[str, Any]]:
    """
    Ventas por día de los últimos `days` días terminando en end_date.

    Returns:
        [{'date': 'YYYY-MM-DD', 'total': float}] del más antiguo al más reciente
    """
    by_day = defaultdict(float)
    for sale in sales:
        by_day[sale.date] += sale.total

    result = []
    for offset in range(days - 1, -1, -1):
        day = (end_date - timedelta(days=offset)).isoformat()
        result.append({'date': day, 'total': by_day.get(day, 0.0)})
    return result


# ==============================================================================
# REPORTES
# ==============================================================================

def sales_report(sales: List[Sale], products: Iterable[Product]) -> Dict[str, Any]:
    """Totales del período y detalle por producto (mayor recaudación primero)."""
    items = sorted(_ranked(sales, products), key=lambda i: i['revenue'], reverse=True)
    return {
        'totalSales': total_sales(sales),
        'totalItems': sum(s.items_count for s in sales),
        'transactions': len(sales),
        'products': items,
    }


def inventory_report(
    products: List[Product],
    threshold: int = LOW_STOCK_THRESHOLD,
    suppliers: Iterable[Supplier] = ()
) -> Dict[str, Any]:
    """
    Estado del inventario completo (no depende del rango de fechas).
    Proveedores eliminados se muestran como 'N/A'.
    """
    supplier_names = {s.id: s.name for s in suppliers}
    return {
        'totalProducts': len(products),
        'lowStock': [p.to_dict() for p in products if p.stock < threshold],
        'outOfStock': [p.to_dict() for p in products if p.stock == 0],
        'totalValue': inventory_valuation(products),
        'products': [
            dict(
                p.to_dict(),
                value=p.inventory_value,
                supplierName=supplier_names.get(p.supplier_id, NOT_AVAILABLE),
            )
            for p in products
        ],
    }


def profit_report(sales: List[Sale], products: Iterable[Product]) -> Dict[str, Any]:
    """
    Ganancia recalculada con el precio de compra VIGENTE.

    Puede diferir de la suma de sale.profit si los costos cambiaron
    después de la venta. Líneas de productos eliminados cuestan 0.
    """
    costs = {p.id: p.buying_price for p in products}
    revenue = total_sales(sales)
    cost = sum(
        costs.get(item.product_id, 0.0) * item.quantity
        for sale in sales
        for item in sale.items
    )
    profit = revenue - cost
    return {
        'totalRevenue': revenue,
        'totalCost': cost,
        'totalProfit': profit,
        'profitMargin': (profit / revenue * 100) if revenue > 0 else 0.0,
    }


def expenses_report(expenses: List[Expense]) -> Dict[str, Any]:
    """Total del período y gastos por categoría (mayor monto primero)."""
    total = sum(e.amount for e in expenses)
    by_category: Dict[str, float] = OrderedDict()
    for expense in expenses:
        by_category[expense.category] = by_category.get(expense.category, 0.0) + expense.amount
    categories = sorted(
        (
            {
                'category': category,
                'amount': amount,
                'percentage': (amount / total * 100) if total > 0 else 0.0,
            }
            for category, amount in by_category.items()
        ),
        key=lambda c: c['amount'],
        reverse=True
    )
    return {'totalExpenses': total, 'categories': categories}


# ==============================================================================
# DASHBOARD
# ==============================================================================

def recent_supplier_payments(expenses: Iterable[Expense], limit: int = 5) -> List[Expense]:
    payments = [e for e in expenses if e.category == EXPENSE_SUPPLIER_PAYMENT]
    return sorted(payments, key=lambda e: e.date, reverse=True)[:limit]


def dashboard_summary(
    sales: List[Sale],
    products: List[Product],
    expenses: List[Expense],
    today: date,
    threshold: int = LOW_STOCK_THRESHOLD
) -> Dict[str, Any]:
    """
    Todo lo que muestra el dashboard.

    Args:
        sales: Todas las ventas
        products: Catálogo
        expenses: Todos los gastos
        today: Fecha de referencia (año de los gráficos y últimos 7 días)
        threshold: Umbral de stock bajo

    Returns:
        Dict con totales, gráficos y analítica
    """
    year = today.year
    return {
        'totalSales': total_sales(sales),
        'totalProfit': profit_in_range(sales),
        'totalProducts': len(products),
        'totalCreditPayments': sum(
            e.amount for e in expenses if e.category == EXPENSE_CREDIT_PAYMENT
        ),
        'charts': {
            'months': list(MONTH_LABELS),
            'monthlyRevenue': monthly_totals(sales, year, 'total'),
            'monthlyProfit': monthly_totals(sales, year, 'profit'),
            'monthlyExpenses': monthly_totals(expenses, year, 'amount'),
            'monthlyExpensesByCategory': monthly_category_totals(expenses, year),
            'last7Days': daily_sales(sales, today, days=7),
            'bestSelling': best_selling(sales, products, limit=5),
            'salesByCategory': sales_by_category(sales, products),
        },
        'analytics': {
            'topSelling': best_selling(sales, products, limit=10),
            'lowStock': [p.to_dict() for p in low_stock(products, threshold, limit=10)],
            'leastSelling': least_selling(sales, products, limit=10),
        },
        'recentSupplierPayments': [
            e.to_dict() for e in recent_supplier_payments(expenses)
        ],
    }


def quick_stats(
    sales: List[Sale],
    products: List[Product],
    today: date,
    threshold: int = LOW_STOCK_THRESHOLD
) -> Dict[str, Any]:
    """Ventas de hoy, ventas y ganancia del mes, cantidad con stock bajo."""
    today_iso = today.isoformat()
    month_prefix = today_iso[:7]
    month_sales = [s for s in sales if s.date[:7] == month_prefix]
    return {
        'todaySales': total_sales(s for s in sales if s.date == today_iso),
        'monthSales': total_sales(month_sales),
        'monthProfit': profit_in_range(month_sales),
        'lowStockCount': len(low_stock(products, threshold)),
    }


class StatsService:
    """
    Servicio de estadísticas.

    Carga las colecciones desde el repositorio y delega en las funciones
    puras del módulo.
    """

    def __init__(
        self,
        repository: PosRepository,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
        clock: Callable[[], datetime] = None
    ):
        """
        Inicializa el servicio.

        Args:
            repository: Fachada de persistencia
            low_stock_threshold: Umbral de stock bajo
            clock: Función que retorna la hora actual (inyectable en tests)
        """
        self.repository = repository
        self.low_stock_threshold = low_stock_threshold
        self._clock = clock or datetime.now

    def _today(self) -> date:
        return self._clock().date()

    def dashboard(self) -> Dict[str, Any]:
        return dashboard_summary(
            self.repository.get_sales(),
            self.repository.get_products(),
            self.repository.get_expenses(),
            self._today(),
            self.low_stock_threshold,
        )

    def quick_stats(self) -> Dict[str, Any]:
        return quick_stats(
            self.repository.get_sales(),
            self.repository.get_products(),
            self._today(),
            self.low_stock_threshold,
        )

    def generate_report(self, report_type: str, start: str, end: str) -> Dict[str, Any]:
        """
        Genera un reporte para un rango de fechas.

        Args:
            report_type: 'sales', 'inventory', 'profit' o 'expenses'
            start: Fecha inicio ISO (inclusive)
            end: Fecha fin ISO (inclusive)

        Returns:
            {'type', 'start', 'end', 'data'}

        Raises:
            InvalidReportType: Tipo desconocido
            InvalidDateRange: Fechas vacías, inválidas o start > end
        """
        if report_type not in REPORT_TYPES:
            raise InvalidReportType(
                f"Tipo de reporte desconocido: {report_type}",
                report_type=report_type
            )
        start_date = _parse_date(start)
        end_date = _parse_date(end)
        if start_date is None or end_date is None:
            raise InvalidDateRange("Seleccione fecha de inicio y fin", start=start, end=end)
        if start_date > end_date:
            raise InvalidDateRange(
                "La fecha de inicio no puede ser posterior a la fecha de fin",
                start=start, end=end
            )

        start, end = start_date.isoformat(), end_date.isoformat()
        products = self.repository.get_products()
        if report_type == 'sales':
            data = sales_report(sales_in_range(self.repository.get_sales(), start, end), products)
        elif report_type == 'inventory':
            data = inventory_report(
                products, self.low_stock_threshold, self.repository.get_suppliers()
            )
        elif report_type == 'profit':
            data = profit_report(sales_in_range(self.repository.get_sales(), start, end), products)
        else:
            data = expenses_report(expenses_in_range(self.repository.get_expenses(), start, end))

        return {'type': report_type, 'start': start, 'end': end, 'data': data}
