import logging
import os
import threading

import pytest

from swift_pos.exceptions import (
    EmptyCart,
    InsufficientPayment,
    InsufficientStock,
    InvalidDiscount,
    InvalidQuantity,
    OutOfStock,
    ProductNotFound,
    StorageError,
)
from swift_pos.repositories import JsonFileStorage, MemoryStorage, PosRepository
from swift_pos.services import SaleEngine
from swift_pos.services.sale_engine import clamp_percent

from conftest import fixed_clock, make_product


def _stock(repo, product_id):
    return next(p.stock for p in repo.get_products() if p.id == product_id)


# ==============================================================================
# CARRITO
# ==============================================================================

def test_add_twice_merges_into_one_line(engine):
    engine.add_or_increment('p1')
    line = engine.add_or_increment('p1')

    assert len(engine.cart) == 1
    assert line.quantity == 2
    assert line.total == pytest.approx(300)


def test_repeated_adds_accumulate_quantity(seeded_repo):
    seeded_repo.save_products([make_product('p1', stock=50)])
    engine = SaleEngine(seeded_repo, clock=fixed_clock)
    for _ in range(7):
        engine.add_or_increment('p1')

    assert len(engine.cart) == 1
    assert engine.cart[0].quantity == 7


def test_add_snapshots_name_and_price(engine, seeded_repo):
    line = engine.add_or_increment('p1', default_discount_percent=10)

    products = seeded_repo.get_products()
    products[0].selling_price = 999
    products[0].name = 'Renombrado'
    seeded_repo.save_products(products)
    engine.add_or_increment('p1')

    assert line.name == 'Camisa'
    assert line.price == 150
    assert line.discount == 10
    assert line.total == pytest.approx(150 * 0.9 * 2)


def test_add_out_of_stock_product(engine):
    with pytest.raises(OutOfStock):
        engine.add_or_increment('p3')
    assert engine.cart == []


def test_add_unknown_product(engine):
    with pytest.raises(ProductNotFound):
        engine.add_or_increment('missing')


def test_add_with_invalid_default_discount(engine):
    with pytest.raises(InvalidDiscount):
        engine.add_or_increment('p1', default_discount_percent=120)
    assert engine.cart == []


def test_remove_line_and_missing_line_is_noop(engine):
    line = engine.add_or_increment('p1')
    assert engine.remove_line('nope') is False
    assert engine.remove_line(line.id) is True
    assert engine.cart == []


def test_update_line_recomputes_from_snapshot(engine):
    line = engine.add_or_increment('p1')
    engine.update_line(line.id, 3, 20)

    assert line.quantity == 3
    assert line.discount == 20
    assert line.total == pytest.approx(150 * 0.8 * 3)


def test_update_line_invalid_discount_leaves_line_unchanged(engine):
    line = engine.add_or_increment('p1')
    before = line.to_dict()

    with pytest.raises(InvalidDiscount):
        engine.update_line(line.id, 2, 150)

    assert line.to_dict() == before


@pytest.mark.parametrize('quantity', [0, -1, 1.5, 'abc', None, 'inf', float('inf'), float('-inf'), 'nan'])
def test_update_line_invalid_quantity(engine, quantity):
    line = engine.add_or_increment('p1')
    with pytest.raises(InvalidQuantity):
        engine.update_line(line.id, quantity, 0)
    assert line.quantity == 1


def test_update_line_beyond_stock(engine):
    line = engine.add_or_increment('p2')
    with pytest.raises(InsufficientStock) as exc:
        engine.update_line(line.id, 3, 0)
    assert exc.value.details['available'] == 2
    assert line.quantity == 1


def test_update_line_skips_stock_check_for_deleted_product(engine, seeded_repo):
    line = engine.add_or_increment('p2')
    seeded_repo.put('products', [p for p in seeded_repo.get('products') if p['id'] != 'p2'])

    engine.update_line(line.id, 10, 0)
    assert line.quantity == 10


def test_update_missing_line_returns_none(engine):
    assert engine.update_line('nope', 1, 0) is None


# ==============================================================================
# TOTALES
# ==============================================================================

def test_order_discount_applies_to_subtotal(seeded_repo):
    seeded_repo.save_products([make_product('p1', stock=20, selling=100)])
    engine = SaleEngine(seeded_repo, clock=fixed_clock)
    line = engine.add_or_increment('p1')
    engine.update_line(line.id, 10, 0)
    engine.set_order_discount(10)

    assert engine.compute_cart_subtotal() == pytest.approx(1000)
    assert engine.compute_order_total() == pytest.approx(900)


@pytest.mark.parametrize('raw, expected', [
    (-5, 0), (150, 100), ('abc', 0), (None, 0), (12.5, 12.5),
])
def test_order_discount_is_clamped_silently(raw, expected):
    assert clamp_percent(raw) == expected


def test_suggested_tendered_rounds_half_up(seeded_repo):
    seeded_repo.save_products([make_product('p1', stock=5, selling=100.5)])
    engine = SaleEngine(seeded_repo, clock=fixed_clock)
    engine.add_or_increment('p1')
    assert engine.suggested_tendered() == 101


def test_state_reports_change(engine):
    engine.add_or_increment('p1')
    engine.set_tendered_amount(200)
    state = engine.get_state()

    assert state['items_count'] == 1
    assert state['total'] == pytest.approx(150)
    assert state['change'] == pytest.approx(50)


def test_clear_resets_parameters(engine):
    engine.add_or_increment('p1')
    engine.set_order_discount(10)
    engine.set_tendered_amount(500)
    engine.clear()

    assert engine.cart == []
    assert engine.order_discount_percent == 0
    assert engine.tendered_amount == 0


# ==============================================================================
# CONFIRMACIÓN
# ==============================================================================

def test_commit_scenario_decrements_stock_and_records_profit(engine, seeded_repo):
    engine.add_or_increment('p1')
    engine.add_or_increment('p1')

    sale = engine.commit(tendered_amount=300)

    assert sale.total == pytest.approx(300)
    assert sale.profit == pytest.approx(100)
    assert sale.change == pytest.approx(0)
    assert sale.date == '2024-05-15'
    assert sale.time == '14:30:00'
    assert sale.customer_name == 'Walk-in Customer'
    assert _stock(seeded_repo, 'p1') == 3
    assert [s.id for s in seeded_repo.get_sales()] == [sale.id]
    assert engine.cart == []


def test_commit_total_matches_lines_and_order_discount(engine):
    engine.add_or_increment('p1', default_discount_percent=10)
    engine.add_or_increment('p2')
    engine.set_order_discount(5)

    sale = engine.commit(tendered_amount=10000)
    lines_total = sum(line.total for line in sale.items)

    assert sale.total == pytest.approx(lines_total * 0.95)
    assert sale.change == pytest.approx(sale.amount_paid - sale.total)
    assert sale.order_discount == 5


def test_commit_uses_stored_tendered_amount(engine):
    engine.add_or_increment('p1')
    engine.set_tendered_amount(200)
    sale = engine.commit()
    assert sale.amount_paid == 200
    assert sale.change == pytest.approx(50)


def test_commit_underpaid_by_one_cent_mutates_nothing(engine, seeded_repo, storage):
    engine.add_or_increment('p1')
    before = {key: storage.get(key) for key in storage.keys()}

    with pytest.raises(InsufficientPayment):
        engine.commit(tendered_amount=149.99)

    assert {key: storage.get(key) for key in storage.keys()} == before
    assert len(engine.cart) == 1


def test_commit_empty_cart(engine):
    with pytest.raises(EmptyCart):
        engine.commit(tendered_amount=100)


def test_commit_profit_uses_current_buying_price(engine, seeded_repo):
    engine.add_or_increment('p1')
    products = seeded_repo.get_products()
    products[0].buying_price = 120
    seeded_repo.save_products(products)

    sale = engine.commit(tendered_amount=150)
    assert sale.profit == pytest.approx(30)


def test_commit_line_of_deleted_product_has_zero_cost(engine, seeded_repo):
    engine.add_or_increment('p1')
    seeded_repo.put('products', [])

    sale = engine.commit(tendered_amount=150)
    assert sale.profit == pytest.approx(150)


def test_commit_clamps_stock_at_zero_when_oversold(engine, seeded_repo, caplog):
    engine.add_or_increment('p2')
    engine.add_or_increment('p2')
    products = seeded_repo.get_products()
    products[1].stock = 1
    seeded_repo.save_products(products)

    with caplog.at_level(logging.WARNING, logger='swift_pos'):
        engine.commit(tendered_amount=1000)

    assert _stock(seeded_repo, 'p2') == 0
    assert '[STOCK]' in caplog.text


def test_strict_mode_rejects_oversold_cart(seeded_repo, storage):
    engine = SaleEngine(seeded_repo, strict_stock=True, clock=fixed_clock)
    engine.add_or_increment('p2')
    engine.add_or_increment('p2')
    products = seeded_repo.get_products()
    products[1].stock = 1
    seeded_repo.save_products(products)
    before = storage.get('products')

    with pytest.raises(InsufficientStock):
        engine.commit(tendered_amount=1000)

    assert storage.get('products') == before
    assert seeded_repo.get_sales() == []


def test_strict_mode_rejects_deleted_product(seeded_repo):
    engine = SaleEngine(seeded_repo, strict_stock=True, clock=fixed_clock)
    engine.add_or_increment('p1')
    seeded_repo.put('products', [])

    with pytest.raises(ProductNotFound):
        engine.commit(tendered_amount=150)


def test_commit_resolves_customer_name_snapshot(engine, seeded_repo):
    seeded_repo.put('customers', [{'id': 'c1', 'name': 'Ana'}])
    engine.add_or_increment('p1')

    sale = engine.commit(customer_type='c1', tendered_amount=150)
    assert sale.customer_name == 'Ana'

    engine.add_or_increment('p1')
    sale = engine.commit(customer_type='gone', tendered_amount=150)
    assert sale.customer_name == 'Unknown'


def test_commit_preserves_unknown_product_fields(engine, seeded_repo):
    products = seeded_repo.get('products')
    products[0]['legacyField'] = 'x'
    seeded_repo.put('products', products)
    engine.add_or_increment('p1')

    engine.commit(tendered_amount=150)
    assert seeded_repo.get('products')[0]['legacyField'] == 'x'


# ==============================================================================
# ESCRITURA ATÓMICA Y CONCURRENCIA
# ==============================================================================

class _FailingMemoryStorage(MemoryStorage):
    fail = False

    def put_many(self, values):
        if self.fail:
            raise StorageError("Disco lleno")
        super().put_many(values)


class _FailingJsonStorage(JsonFileStorage):
    fail = False

    def _dump(self, path, data):
        if self.fail and os.path.basename(path) == 'sales.json' + self.TMP_SUFFIX:
            raise OSError("Disco lleno")
        super()._dump(path, data)


class _HookedMemoryStorage(MemoryStorage):
    before_put_many = None

    def put_many(self, values):
        if self.before_put_many:
            self.before_put_many()
        super().put_many(values)


@pytest.fixture(params=['memory', 'json'])
def failing_storage(request, tmp_path):
    if request.param == 'memory':
        return _FailingMemoryStorage()
    return _FailingJsonStorage(str(tmp_path / 'data'))


def test_commit_write_failure_leaves_store_and_cart_intact(failing_storage):
    repo = PosRepository(failing_storage)
    repo.save_products([
        make_product('p1', 'Camisa', stock=5, buying=100, selling=150),
        make_product('p2', 'Vestido', stock=2, buying=300, selling=500),
    ])
    assert repo.get('sales') == []
    engine = SaleEngine(repo, clock=fixed_clock)
    engine.add_or_increment('p1')
    engine.add_or_increment('p2')
    engine.set_order_discount(10)
    products_before = repo.get('products')
    cart_before = [line.to_dict() for line in engine.cart]

    failing_storage.fail = True
    with pytest.raises((StorageError, OSError)):
        engine.commit(tendered_amount=1000)

    assert repo.get('products') == products_before
    assert repo.get('sales') == []
    assert [line.to_dict() for line in engine.cart] == cart_before
    assert engine.order_discount_percent == 10

    # Reintento con el mismo carrito una vez que el almacenamiento responde
    failing_storage.fail = False
    sale = engine.commit(tendered_amount=1000)
    assert _stock(repo, 'p1') == 4
    assert _stock(repo, 'p2') == 1
    assert [s.id for s in repo.get_sales()] == [sale.id]


def test_json_write_failure_leaves_no_temp_files(tmp_path):
    storage = _FailingJsonStorage(str(tmp_path / 'data'))
    repo = PosRepository(storage)
    repo.save_products([make_product('p1', stock=5)])
    repo.get('sales')
    engine = SaleEngine(repo, clock=fixed_clock)
    engine.add_or_increment('p1')

    storage.fail = True
    with pytest.raises(OSError):
        engine.commit(tendered_amount=150)

    assert not [name for name in os.listdir(storage.data_dir) if name.endswith(storage.TMP_SUFFIX)]
    assert not os.path.exists(storage.journal_path)


def test_cart_change_during_commit_waits_and_is_kept():
    storage = _HookedMemoryStorage()
    repo = PosRepository(storage)
    repo.save_products([
        make_product('p1', 'Camisa', stock=5, selling=150),
        make_product('p2', 'Vestido', stock=2, selling=500),
    ])
    engine = SaleEngine(repo, clock=fixed_clock)
    engine.add_or_increment('p1')

    worker = threading.Thread(target=engine.add_or_increment, args=('p2',))
    blocked = []

    def add_from_other_thread():
        worker.start()
        worker.join(timeout=0.2)
        blocked.append(worker.is_alive())

    storage.before_put_many = add_from_other_thread
    sale = engine.commit(tendered_amount=150)
    worker.join(timeout=5)

    assert blocked == [True]
    assert [line.product_id for line in sale.items] == ['p1']
    assert [line.product_id for line in engine.cart] == ['p2']
