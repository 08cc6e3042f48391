"""
Tests for the catalog store
"""
import json

import pytest

from arcshelf.exceptions import (
    BusyException,
    DuplicateIdException,
    NotFoundException,
    StorageException,
    ValidationException,
)
from arcshelf.metadata import Metadata


def strip_timestamps(data):
    return {k: v for k, v in data.items() if k not in ('date_created', 'date_updated')}


class TestCatalogAdd:
    """Tests for CatalogStore.add"""

    def test_add_then_get_all(self, catalog, sample_records):
        for data in sample_records:
            request = Metadata.from_dict(data)
            added = catalog.add(request)
            entries = catalog.get_all()

            matching = [r for r in entries.values() if r.id == added.id]
            assert len(matching) == 1
            expected = strip_timestamps(request.to_dict())
            expected['id'] = added.id
            assert strip_timestamps(matching[0].to_dict()) == expected

    def test_add_generates_id_and_timestamps(self, catalog, backend):
        record = catalog.add(Metadata(title='Foo'))
        assert record.id
        assert record.date_created is not None
        assert record.date_created == record.date_updated
        assert backend.records[record.id].title == 'Foo'

    def test_add_keeps_caller_id(self, catalog):
        assert catalog.add(Metadata(id='mine', title='Foo')).id == 'mine'

    def test_duplicate_id(self, catalog):
        catalog.add(Metadata(id='mine', title='Foo'))
        with pytest.raises(DuplicateIdException):
            catalog.add(Metadata(id='mine', title='Bar'))
        assert catalog.get('mine').title == 'Foo'

    def test_invalid_record_not_inserted(self, catalog, backend):
        with pytest.raises(ValidationException):
            catalog.add(Metadata(title='  '))
        assert catalog.get_all() == {}
        assert backend.saved == []

    def test_backend_failure_leaves_snapshot(self, catalog, backend):
        backend.unreachable = True
        with pytest.raises(StorageException):
            catalog.add(Metadata(title='Foo'))
        assert len(catalog) == 0

    def test_get_all_returns_copies(self, catalog):
        record = catalog.add(Metadata(title='Foo'))
        catalog.get_all()[record.id].title = 'Changed'
        assert catalog.get(record.id).title == 'Foo'


class TestCatalogReplace:
    """Tests for CatalogStore.replace"""

    def test_replace_preserves_date_created(self, catalog):
        original = catalog.add(Metadata(title='Foo'))
        update = original.copy()
        update.title = 'Foo (corrected)'
        update.date_created = None

        replaced = catalog.replace(update)

        assert replaced.id == original.id
        assert replaced.title == 'Foo (corrected)'
        assert replaced.date_created == original.date_created
        assert replaced.date_updated >= original.date_updated

    def test_replace_unknown_id(self, catalog):
        with pytest.raises(NotFoundException):
            catalog.replace(Metadata(id='missing', title='Foo'))

    def test_replace_overwrites_tags(self, catalog, sample_records):
        original = catalog.add(Metadata.from_dict(sample_records[0]))
        update = original.copy()
        update.tags = []
        assert catalog.replace(update).tags == []

    def test_replace_recalculates_size_for_new_archive(self, catalog, tmp_path):
        archive = tmp_path / 'new.zip'
        archive.write_bytes(b'abc')
        original = catalog.add(Metadata(title='Foo', archive_path='/old.zip', size_bytes=99))
        update = original.copy()
        update.archive_path = str(archive)
        update.size_bytes = None
        assert catalog.replace(update).size_bytes == 3


class TestCatalogDelete:
    """Tests for CatalogStore.delete"""

    def test_delete_removes_entry(self, catalog, backend):
        record = catalog.add(Metadata(title='Foo'))
        assert catalog.delete(record.id) is True
        assert record.id not in catalog.get_all()
        assert record.id not in backend.records

    def test_delete_absent_is_noop(self, catalog, backend):
        assert catalog.delete('missing') is False
        assert backend.deleted == []


class TestCatalogReload:
    """Tests for CatalogStore.reload"""

    def test_reload_picks_up_external_changes(self, catalog, backend):
        record = catalog.add(Metadata(title='Foo'))
        backend.records[record.id].title = 'Edited elsewhere'
        entries = catalog.reload()
        assert entries[record.id].title == 'Edited elsewhere'

    def test_reload_failure_keeps_snapshot(self, catalog, backend):
        record = catalog.add(Metadata(title='Foo'))
        backend.unreachable = True
        with pytest.raises(StorageException):
            catalog.reload()
        assert list(catalog.get_all()) == [record.id]


class TestCatalogExportImport:
    """Tests for JSON export/import"""

    def test_export_writes_entries(self, catalog, tmp_path, sample_records):
        for data in sample_records:
            catalog.add(Metadata.from_dict(data))
        path = catalog.export()
        with open(path, encoding='utf-8') as f:
            exported = json.load(f)
        assert [e['title'] for e in exported['entries']] == [d['title'] for d in sample_records]

    def test_import_restores_entries(self, catalog, backend, sample_records):
        added = [catalog.add(Metadata.from_dict(d)) for d in sample_records]
        catalog.export()
        for record in added:
            catalog.delete(record.id)

        assert catalog.import_() is True
        entries = catalog.get_all()
        assert set(entries) == {r.id for r in added}
        assert entries[added[0].id].date_created == added[0].date_created
        assert set(backend.records) == set(entries)

    def test_import_missing_file(self, catalog):
        assert catalog.import_() is False

    def test_import_rejects_invalid_entry_without_writing(self, catalog, backend, tmp_path):
        path = tmp_path / 'library.json'
        path.write_text(json.dumps({'entries': [{'id': 'a', 'title': 'Good'}, {'id': 'b', 'title': ''}]}))
        with pytest.raises(ValidationException):
            catalog.import_(str(path))
        assert backend.saved == []
        assert len(catalog) == 0

    def test_import_corrupt_file(self, catalog, tmp_path):
        path = tmp_path / 'library.json'
        path.write_text('{not json')
        with pytest.raises(StorageException):
            catalog.import_(str(path))


class TestCatalogPending:
    """Tests for the pending markers held during deployments"""

    def test_pending_id_blocks_mutations(self, catalog, backend):
        record = catalog.add(Metadata(title='Foo', archive_path='/a.zip'))
        other = catalog.add(Metadata(title='Bar'))
        catalog.mark_pending(record.id)

        with pytest.raises(BusyException):
            catalog.mark_pending(record.id)
        with pytest.raises(BusyException):
            catalog.replace(record)
        with pytest.raises(BusyException):
            catalog.delete(record.id)
        assert record.id in backend.records

        # Unrelated entries stay writable
        assert catalog.delete(other.id) is True

        catalog.release(record.id)
        assert not catalog.is_pending(record.id)
        assert catalog.delete(record.id) is True

    def test_deployed_path_can_be_set_while_pending(self, catalog):
        record = catalog.add(Metadata(title='Foo', archive_path='/a.zip'))
        catalog.mark_pending(record.id)
        assert catalog.set_deployed_path(record.id, '/games/foo').deployed_path == '/games/foo'
