from datetime import datetime

import pytest

from swift_pos.app_container import AppContainer
from swift_pos.config import PosConfig
from swift_pos.models import Product
from swift_pos.repositories import MemoryStorage, PosRepository
from swift_pos.services import SaleEngine

FIXED_NOW = datetime(2024, 5, 15, 14, 30, 0)


def fixed_clock():
    return FIXED_NOW


def make_product(product_id='p1', name='Camisa', stock=5, buying=100.0, selling=150.0,
                 category='Tops', **extra):
    return Product(
        id=product_id,
        name=name,
        category=category,
        stock=stock,
        buying_price=buying,
        selling_price=selling,
        **extra
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def repo(storage):
    return PosRepository(storage)


@pytest.fixture
def seeded_repo(repo):
    repo.save_products([
        make_product('p1', 'Camisa', stock=5, buying=100, selling=150),
        make_product('p2', 'Vestido', stock=2, buying=300, selling=500, category='Dresses'),
        make_product('p3', 'Zapatos', stock=0, buying=200, selling=400, category='Shoes'),
    ])
    return repo


@pytest.fixture
def engine(seeded_repo):
    return SaleEngine(seeded_repo, clock=fixed_clock)


@pytest.fixture
def container(storage):
    config = PosConfig(storage_type='memory')
    return AppContainer(config, storage=storage, clock=fixed_clock)
