from datetime import date

import pytest

from swift_pos.exceptions import InvalidDateRange, InvalidReportType
from swift_pos.models import CartLine, Expense, Sale, Supplier
from swift_pos.services import StatsService
from swift_pos.services.stats_service import (
    best_selling,
    daily_sales,
    dashboard_summary,
    expenses_report,
    inventory_report,
    inventory_valuation,
    least_selling,
    low_stock,
    monthly_category_totals,
    monthly_totals,
    profit_report,
    quick_stats,
    sales_by_category,
    sales_in_range,
    sales_report,
)

from conftest import fixed_clock, make_product


def _sale(sale_id, sale_date, lines, profit=0.0):
    items = tuple(
        CartLine(id=f'{sale_id}-{i}', product_id=pid, name=name, price=price, quantity=qty)
        for i, (pid, name, price, qty) in enumerate(lines)
    )
    return Sale(
        id=sale_id,
        date=sale_date,
        items=items,
        total=sum(item.total for item in items),
        profit=profit,
    )


@pytest.fixture
def products():
    return [
        make_product('p1', 'Camisa', stock=5, buying=100, selling=150),
        make_product('p2', 'Vestido', stock=12, buying=300, selling=500, category='Dresses'),
        make_product('p3', 'Zapatos', stock=0, buying=200, selling=400, category='Shoes',
                     supplier_id='s1'),
    ]


@pytest.fixture
def sales():
    return [
        _sale('v1', '2024-05-01', [('p1', 'Camisa', 150, 2)], profit=100),
        _sale('v2', '2024-05-15', [('p2', 'Vestido', 500, 1), ('p1', 'Camisa', 150, 1)], profit=250),
        _sale('v3', '2024-04-20', [('gone', 'Borrado', 80, 3)], profit=60),
        _sale('v4', '2023-05-10', [('p2', 'Vestido', 500, 1)], profit=200),
    ]


@pytest.fixture
def expenses():
    return [
        Expense(id='e1', category='Supplier Payment', amount=300, date='2024-05-02', supplier_id='s1'),
        Expense(id='e2', category='Rent', amount=1000, date='2024-05-01'),
        Expense(id='e3', category='', amount=50, date='2024-03-10'),
        Expense(id='e4', category='Credit Payment', amount=75, date='2024-01-05'),
    ]


# ==============================================================================
# FUNCIONES PURAS
# ==============================================================================

def test_empty_inputs_yield_zeros():
    assert inventory_valuation([]) == 0
    assert low_stock([]) == []
    assert best_selling([], []) == []
    assert monthly_totals([], 2024, 'total') == [0.0] * 12
    assert sales_report([], [])['totalSales'] == 0
    assert profit_report([], [])['profitMargin'] == 0
    assert expenses_report([]) == {'totalExpenses': 0, 'categories': []}


def test_sales_in_range_is_inclusive(sales):
    result = sales_in_range(sales, '2024-05-01', '2024-05-15')
    assert [s.id for s in result] == ['v1', 'v2']


def test_inventory_valuation(products):
    assert inventory_valuation(products) == 100 * 5 + 300 * 12


def test_low_stock_sorted_ascending(products):
    assert [p.id for p in low_stock(products)] == ['p3', 'p1']
    assert [p.id for p in low_stock(products, limit=1)] == ['p3']


def test_best_selling_falls_back_to_snapshot_name(sales, products):
    ranked = best_selling(sales, products)

    assert [i['productId'] for i in ranked] == ['p1', 'gone', 'p2']
    assert ranked[0]['quantity'] == 3
    assert ranked[1]['name'] == 'Borrado'


def test_best_selling_ties_keep_first_seen_order(products):
    sales = [_sale('v1', '2024-05-01', [('p2', 'Vestido', 500, 1), ('p1', 'Camisa', 150, 1)])]
    assert [i['productId'] for i in best_selling(sales, products)] == ['p2', 'p1']


def test_least_selling_ascending(sales, products):
    assert [i['productId'] for i in least_selling(sales, products)] == ['p2', 'p1', 'gone']


def test_monthly_totals_current_year_only(sales):
    totals = monthly_totals(sales, 2024, 'total')
    assert totals[4] == pytest.approx(300 + 650)
    assert totals[3] == pytest.approx(240)
    assert sum(totals) == pytest.approx(1190)


def test_monthly_category_totals_uncategorized(expenses):
    totals = monthly_category_totals(expenses, 2024)
    assert totals['Uncategorized'][2] == 50
    assert totals['Rent'][4] == 1000
    assert list(totals) == ['Supplier Payment', 'Rent', 'Uncategorized', 'Credit Payment']


def test_sales_by_category_ignores_deleted_products(sales, products):
    assert sales_by_category(sales, products) == {'Tops': 450, 'Dresses': 1000}


def test_daily_sales_last_seven_days(sales):
    days = daily_sales(sales, date(2024, 5, 15))
    assert len(days) == 7
    assert days[0]['date'] == '2024-05-09'
    assert days[-1] == {'date': '2024-05-15', 'total': 650}


def test_sales_report_sorted_by_revenue(sales, products):
    report = sales_report(sales[:2], products)
    assert report['totalSales'] == pytest.approx(950)
    assert report['totalItems'] == 4
    assert report['transactions'] == 2
    assert [p['productId'] for p in report['products']] == ['p2', 'p1']


def test_inventory_report(products):
    suppliers = [Supplier(id='s1', name='Textiles SA')]
    report = inventory_report(products, suppliers=suppliers)

    assert [p['id'] for p in report['lowStock']] == ['p1', 'p3']
    assert [p['id'] for p in report['outOfStock']] == ['p3']
    assert report['totalValue'] == 4100
    names = {p['id']: p['supplierName'] for p in report['products']}
    assert names == {'p1': 'N/A', 'p2': 'N/A', 'p3': 'Textiles SA'}


def test_profit_report_uses_current_buying_price(sales, products):
    report = profit_report(sales[:2], products)
    # costo: p1 3×100 + p2 1×300
    assert report['totalRevenue'] == pytest.approx(950)
    assert report['totalCost'] == pytest.approx(600)
    assert report['totalProfit'] == pytest.approx(350)
    assert report['profitMargin'] == pytest.approx(350 / 950 * 100)


def test_expenses_report_sorted_desc(expenses):
    report = expenses_report(expenses)
    assert report['totalExpenses'] == 1425
    assert [c['category'] for c in report['categories']][:2] == ['Rent', 'Supplier Payment']


def test_dashboard_summary(sales, products, expenses):
    summary = dashboard_summary(sales, products, expenses, date(2024, 5, 15))

    assert summary['totalSales'] == pytest.approx(1690)
    assert summary['totalProfit'] == pytest.approx(610)
    assert summary['totalProducts'] == 3
    assert summary['totalCreditPayments'] == 75
    assert len(summary['charts']['bestSelling']) == 3
    assert [e['id'] for e in summary['recentSupplierPayments']] == ['e1']
    assert [p['id'] for p in summary['analytics']['lowStock']] == ['p3', 'p1']


def test_quick_stats(sales, products):
    stats = quick_stats(sales, products, date(2024, 5, 15))
    assert stats == {
        'todaySales': 650,
        'monthSales': 950,
        'monthProfit': 350,
        'lowStockCount': 2,
    }


# ==============================================================================
# SERVICIO
# ==============================================================================

def test_generate_report_validates_range(repo):
    service = StatsService(repo, clock=fixed_clock)
    with pytest.raises(InvalidDateRange):
        service.generate_report('sales', '2024-05-10', '2024-05-01')
    with pytest.raises(InvalidDateRange):
        service.generate_report('sales', '', '2024-05-01')


def test_generate_report_unknown_type(repo):
    with pytest.raises(InvalidReportType):
        StatsService(repo).generate_report('payroll', '2024-05-01', '2024-05-31')


def test_generate_report_filters_by_range(repo, sales):
    repo.put('sales', [s.to_dict() for s in sales])
    report = StatsService(repo).generate_report('sales', '2024-05-01', '2024-05-31')
    assert report['data']['transactions'] == 2
    assert report['start'] == '2024-05-01'


def test_quick_stats_uses_clock(repo, sales):
    repo.put('sales', [s.to_dict() for s in sales])
    stats = StatsService(repo, clock=fixed_clock).quick_stats()
    assert stats['todaySales'] == 650
