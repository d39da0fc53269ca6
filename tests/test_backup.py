import json

import pytest

from swift_pos.exceptions import IncompatibleBackup
from swift_pos.repositories import JsonFileStorage, MemoryStorage, PosRepository, SCHEMA_VERSION
from swift_pos.services import BackupService, SaleEngine

from conftest import fixed_clock


@pytest.fixture
def backup(seeded_repo):
    engine = SaleEngine(seeded_repo, clock=fixed_clock)
    engine.add_or_increment('p1')
    engine.commit(tendered_amount=150)
    seeded_repo.put('suppliers', [{'id': 's1', 'name': 'Textiles'}])
    return BackupService(seeded_repo, clock=fixed_clock)


def test_export_document_shape(backup):
    document = backup.export_data()
    assert document['schemaVersion'] == SCHEMA_VERSION
    assert document['exportedAt'] == '2024-05-15T14:30:00'
    assert len(document['collections']['sales']) == 1


def test_export_then_import_into_fresh_store(backup, seeded_repo, tmp_path):
    document = backup.export_data()

    fresh = PosRepository(JsonFileStorage(str(tmp_path / 'fresh')))
    counts = BackupService(fresh).import_data(document)

    assert fresh.export_all() == seeded_repo.export_all()
    assert counts['sales'] == 1
    assert counts['products'] == 3


def test_import_replaces_without_merge(backup, seeded_repo):
    backup.import_data({'collections': {'products': [{'id': 'nuevo', 'name': 'X'}]}})

    assert [p['id'] for p in seeded_repo.get('products')] == ['nuevo']
    assert seeded_repo.get('sales') == []
    assert seeded_repo.get('suppliers') == []


def test_import_accepts_flat_format():
    repo = PosRepository(MemoryStorage())
    BackupService(repo).import_data({'products': [], 'categories': ['Hats']})
    assert repo.get_categories() == ['Hats']


@pytest.mark.parametrize('document', [
    None,
    [],
    {'schemaVersion': SCHEMA_VERSION + 1, 'collections': {}},
    {'collections': {'products': {}}},
    {'collections': {'companyInfo': []}},
    {'collections': {'users': []}},
    {'nada': 1},
])
def test_import_rejects_incompatible_documents(backup, seeded_repo, document):
    before = seeded_repo.export_all()
    with pytest.raises(IncompatibleBackup):
        backup.import_data(document)
    assert seeded_repo.export_all() == before


def test_file_round_trip(backup, seeded_repo, tmp_path):
    path = str(tmp_path / 'respaldos' / 'backup.json')
    backup.export_to_file(path)

    with open(path, encoding='utf-8') as f:
        assert json.load(f)['schemaVersion'] == SCHEMA_VERSION

    seeded_repo.put('products', [])
    backup.import_from_file(path)
    assert len(seeded_repo.get('products')) == 3


def test_import_from_invalid_file(backup, tmp_path):
    path = tmp_path / 'roto.json'
    path.write_text('{roto')
    with pytest.raises(IncompatibleBackup):
        backup.import_from_file(str(path))


def test_reset_restores_defaults(backup, seeded_repo):
    backup.reset_data()
    assert seeded_repo.get('products') == []
    assert seeded_repo.get('sales') == []
    assert seeded_repo.get_company_info().name == 'Swift POS'
