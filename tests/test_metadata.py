"""
Tests for metadata records and their validation
"""
import os

import pytest

from arcshelf.exceptions import DuplicateIdException, ValidationException
from arcshelf.metadata import Metadata, Tag, validate
from arcshelf.platforms import Platform


def make_record(**overrides):
    values = {'id': 'abc', 'title': 'Foo'}
    values.update(overrides)
    return Metadata(**values)


class TestValidate:
    """Tests for validate()"""

    def test_valid_record_passes(self):
        validate(make_record(archive_path='/a.zip', size_bytes=0, tags=[Tag('RPG')]))

    @pytest.mark.parametrize('title', ['', '   ', None])
    def test_title_required(self, title):
        with pytest.raises(ValidationException) as exc:
            validate(make_record(title=title))
        assert exc.value.field == 'title'

    @pytest.mark.parametrize('entry_id', ['', None])
    def test_id_required(self, entry_id):
        with pytest.raises(ValidationException) as exc:
            validate(make_record(id=entry_id))
        assert exc.value.field == 'id'

    def test_colliding_id_on_creation(self):
        with pytest.raises(DuplicateIdException):
            validate(make_record(), existing_ids={'abc'})

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationException) as exc:
            validate(make_record(size_bytes=-1))
        assert exc.value.field == 'size_bytes'

    @pytest.mark.parametrize('field', ['archive_path', 'deployed_path'])
    def test_empty_paths_rejected(self, field):
        with pytest.raises(ValidationException) as exc:
            validate(make_record(**{field: ''}))
        assert exc.value.field == field

    def test_paths_not_checked_on_disk(self):
        validate(make_record(archive_path='/does/not/exist.zip', deployed_path='/nowhere'))

    def test_unknown_content_type_rejected(self):
        with pytest.raises(ValidationException) as exc:
            validate(make_record(content_type='Podcast'))
        assert exc.value.field == 'content_type'

    def test_empty_tag_name_rejected(self):
        with pytest.raises(ValidationException) as exc:
            validate(make_record(tags=[Tag('')]))
        assert exc.value.field == 'tags'

    def test_validation_does_not_modify_record(self):
        record = make_record(size_bytes=-5)
        before = record.to_dict()
        with pytest.raises(ValidationException):
            validate(record)
        assert record.to_dict() == before


class TestMetadata:
    """Tests for Metadata helpers"""

    def test_deployed_state_follows_path(self):
        assert not make_record().is_deployed
        assert not make_record(deployed_path='').is_deployed
        assert make_record(deployed_path='/games/foo').is_deployed

    def test_from_dict_defaults(self):
        record = Metadata.from_dict({'title': 'Foo', 'unknown_key': 1})
        assert record.id is None
        assert record.content_type == 'Unknown'
        assert record.platform == Platform('Unknown', None)
        assert record.version == '1.0'
        assert record.tags == []

    def test_other_platform_id_follows_external_id(self):
        record = Metadata.from_dict({'title': 'Foo', 'platform': {'platform': 'Other', 'id': 'X'}, 'platform_id': 'Y'})
        assert record.platform_id == 'X'

    def test_tags_keep_order_and_duplicates(self):
        record = Metadata.from_dict({'title': 'Foo', 'tags': [{'name': 'b'}, {'name': 'a'}, {'name': 'b'}]})
        assert [t.name for t in record.tags] == ['b', 'a', 'b']

    @pytest.mark.parametrize('tags', [[5], [['Puzzle']], 'Puzzle', {'name': 'Puzzle'}])
    def test_malformed_tags_rejected(self, tags):
        with pytest.raises(ValidationException) as exc:
            Metadata.from_dict({'title': 'Foo', 'tags': tags})
        assert exc.value.field == 'tags'

    def test_malformed_platform_becomes_unknown(self):
        record = Metadata.from_dict({'title': 'Foo', 'platform': 5})
        assert record.platform == Platform('Unknown', None)

    def test_serialized_dates_are_iso(self):
        record = Metadata.from_dict({'title': 'Foo', 'date_created': '2026-01-01T10:00:00Z'})
        assert record.to_dict()['date_created'] == '2026-01-01T10:00:00+00:00'

    def test_calculate_size_of_file(self, tmp_path):
        archive = tmp_path / 'a.zip'
        archive.write_bytes(b'x' * 10)
        record = make_record(archive_path=str(archive))
        assert record.calculate_size()
        assert record.size_bytes == 10

    def test_calculate_size_of_directory(self, tmp_path):
        (tmp_path / 'sub').mkdir()
        (tmp_path / 'one.bin').write_bytes(b'1234')
        (tmp_path / 'sub' / 'two.bin').write_bytes(b'12')
        record = make_record(archive_path=str(tmp_path))
        assert record.calculate_size()
        assert record.size_bytes == 6

    def test_calculate_size_missing_path(self):
        record = make_record(archive_path=os.path.join('/nonexistent', 'x.zip'))
        assert not record.calculate_size()
        assert record.size_bytes is None
        assert not make_record().calculate_size()
