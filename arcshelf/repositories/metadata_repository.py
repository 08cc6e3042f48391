"""
Repository for MetadataEntry database operations

This is the persistence backend of the catalog: load_all / save / delete,
speaking in Metadata records rather than rows.
"""

from sqlalchemy.exc import SQLAlchemyError

from arcshelf.db import db
from arcshelf.exceptions import StorageException
from arcshelf.metadata import Metadata, Tag
from arcshelf.models.metadata_entry import MetadataEntry
from arcshelf.platforms import normalize
from arcshelf.utils import ensure_utc


def entry_to_metadata(item):
    return Metadata(
        id=item.id,
        title=item.title,
        original_title=item.original_title,
        content_type=item.content_type,
        platform=normalize(item.platform_kind, item.platform_external_id),
        platform_id=item.platform_id,
        description=item.description,
        version=item.version,
        developer=item.developer,
        publisher=item.publisher,
        release_date=item.release_date,
        archive_path=item.archive_path,
        archive_password=item.archive_password,
        size_bytes=item.size_bytes,
        deployed_path=item.deployed_path,
        tags=[Tag.from_dict(t) for t in (item.tags_json or [])],
        date_created=ensure_utc(item.date_created),
        date_updated=ensure_utc(item.date_updated),
    )


def apply_metadata(item, record):
    item.title = record.title
    item.original_title = record.original_title
    item.content_type = record.content_type
    item.platform_kind = record.platform.kind
    item.platform_external_id = record.platform.external_id
    item.platform_id = record.platform_id
    item.description = record.description
    item.version = record.version
    item.developer = record.developer
    item.publisher = record.publisher
    item.release_date = record.release_date
    item.archive_path = record.archive_path
    item.archive_password = record.archive_password
    item.size_bytes = record.size_bytes
    item.deployed_path = record.deployed_path
    item.tags_json = [t.to_dict() for t in record.tags]
    item.date_created = record.date_created
    item.date_updated = record.date_updated
    return item


class MetadataRepository:
    """Repository for MetadataEntry database operations"""

    @staticmethod
    def load_all():
        """Load every record, keyed by id"""
        try:
            return {item.id: entry_to_metadata(item) for item in MetadataEntry.query.all()}
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to read library: {e}") from e

    @staticmethod
    def get_by_id(id):
        """Get a record by id, None when absent"""
        try:
            item = db.session.get(MetadataEntry, id)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to read metadata {id}: {e}") from e
        return entry_to_metadata(item) if item else None

    @staticmethod
    def save(record):
        """Insert or overwrite a record"""
        try:
            item = db.session.get(MetadataEntry, record.id)
            if item is None:
                item = MetadataEntry(id=record.id)
                db.session.add(item)
            apply_metadata(item, record)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to save metadata {record.id}: {e}") from e

    @staticmethod
    def save_many(records):
        """Insert or overwrite several records in one transaction"""
        try:
            for record in records:
                item = db.session.get(MetadataEntry, record.id)
                if item is None:
                    item = MetadataEntry(id=record.id)
                    db.session.add(item)
                apply_metadata(item, record)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to save library: {e}") from e

    @staticmethod
    def delete(id):
        """Delete a record, False when it did not exist"""
        try:
            item = db.session.get(MetadataEntry, id)
            if not item:
                return False
            db.session.delete(item)
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to delete metadata {id}: {e}") from e

    @staticmethod
    def count():
        """Count total MetadataEntry records"""
        return MetadataEntry.query.count()
