import logging

import pytest

from swift_pos.app_container import AppContainer, build_storage, get_container, reset_container
from swift_pos.config import PosConfig
from swift_pos.exceptions import ValidationError
from swift_pos.logging_setup import configure_logging
from swift_pos.repositories import JsonFileStorage, MemoryStorage, SqliteStorage


def test_defaults():
    config = PosConfig.from_env({})
    assert config.data_dir == 'data'
    assert config.storage_type == 'json'
    assert config.strict_stock is False
    assert config.log_level == 'INFO'
    assert config.low_stock_threshold == 10


def test_from_env_reads_variables():
    config = PosConfig.from_env({
        'POS_DATA_DIR': '/tmp/pos',
        'POS_STORAGE': 'SQLite',
        'POS_STRICT_STOCK': 'true',
        'POS_LOG_LEVEL': 'debug',
        'POS_LOW_STOCK_THRESHOLD': '3',
    })
    assert config.storage_type == 'sqlite'
    assert config.strict_stock is True
    assert config.log_level == 'DEBUG'
    assert config.low_stock_threshold == 3
    assert config.sqlite_path.endswith('swift_pos.db')


def test_invalid_storage_type():
    with pytest.raises(ValidationError):
        PosConfig(storage_type='mysql')


def test_build_storage_by_type(tmp_path):
    assert isinstance(build_storage(PosConfig(storage_type='memory')), MemoryStorage)
    assert isinstance(build_storage(PosConfig(data_dir=str(tmp_path), storage_type='json')), JsonFileStorage)
    sqlite = build_storage(PosConfig(data_dir=str(tmp_path), storage_type='sqlite'))
    try:
        assert isinstance(sqlite, SqliteStorage)
    finally:
        sqlite.close()


def test_container_shares_repository():
    container = AppContainer(PosConfig(storage_type='memory'))
    assert container.sale_engine.repository is container.inventory_service.repository
    assert container.sale_engine is container.sale_engine


def test_container_passes_strict_stock():
    container = AppContainer(PosConfig(storage_type='memory', strict_stock=True))
    assert container.sale_engine.strict_stock is True


def test_global_container_is_singleton():
    reset_container()
    try:
        first = get_container(PosConfig(storage_type='memory'))
        assert get_container() is first
    finally:
        reset_container()


def test_configure_logging_sets_level():
    logger = configure_logging('WARNING')
    assert logger.name == 'swift_pos'
    assert logger.level == logging.WARNING
    handlers = len(logger.handlers)
    configure_logging('INFO')
    assert len(logger.handlers) == handlers
