"""
Catalog Store - in-memory snapshot of the library over the persistence backend

Every mutation runs under one lock and swaps in a new snapshot dict once the
backend write succeeded, so readers see a mutation either fully or not at all.
Ids claimed with mark_pending (a deployment in progress) reject every other
mutation with BusyException until released.
"""

import json
import os
import threading

import structlog

from arcshelf.constants import LIBRARY_EXPORT_FILE
from arcshelf.exceptions import ArcShelfException, BusyException, NotFoundException, StorageException
from arcshelf.metadata import Metadata, new_metadata_id, validate
from arcshelf.platforms import Platform
from arcshelf.repositories.metadata_repository import MetadataRepository
from arcshelf.utils import now_utc, safe_write_json, sanitize_sensitive_data

logger = structlog.get_logger('catalog')


class CatalogStore:
    """Owns the catalog; callers only ever receive copies of its records"""

    def __init__(self, backend=MetadataRepository, app=None, data_dir=None):
        self.backend = backend
        self.app = app
        self.data_dir = data_dir
        self._lock = threading.RLock()
        self._entries = {}
        self._pending = set()

    def _call_backend(self, method, *args):
        try:
            if self.app is None:
                return method(*args)
            with self.app.app_context():
                return method(*args)
        except ArcShelfException:
            raise
        except OSError as e:
            raise StorageException(f"Library storage unavailable: {e}") from e

    @staticmethod
    def _normalized(record):
        record = record.copy()
        record.platform = Platform.from_dict(record.platform)
        record.sync_platform_id()
        return record

    def get_all(self):
        """Snapshot of the whole catalog keyed by id"""
        entries = self._entries
        return {entry_id: record.copy() for entry_id, record in entries.items()}

    def get(self, entry_id):
        record = self._entries.get(entry_id)
        if record is None:
            raise NotFoundException(entry_id)
        return record.copy()

    def __len__(self):
        return len(self._entries)

    def mark_pending(self, entry_id):
        """Claim an id for a long-running operation; raises Busy when already claimed"""
        with self._lock:
            if entry_id in self._pending:
                raise BusyException(entry_id)
            self._pending.add(entry_id)

    def release(self, entry_id):
        with self._lock:
            self._pending.discard(entry_id)

    def is_pending(self, entry_id):
        with self._lock:
            return entry_id in self._pending

    def _check_not_pending(self, entry_id):
        if entry_id in self._pending:
            raise BusyException(entry_id)

    def add(self, record: Metadata) -> Metadata:
        """Insert a new record, generating its id when the caller gave none"""
        record = self._normalized(record)
        with self._lock:
            if record.id is None:
                record.id = new_metadata_id()
            now = now_utc()
            record.date_created = now
            record.date_updated = now

            validate(record, existing_ids=self._entries.keys())
            self._call_backend(self.backend.save, record)

            entries = dict(self._entries)
            entries[record.id] = record
            self._entries = entries

        logger.info("Metadata added", metadata=sanitize_sensitive_data(record.to_dict()))
        return record.copy()

    def replace(self, record: Metadata) -> Metadata:
        """Overwrite an existing record; date_created is kept from the stored one"""
        record = self._normalized(record)
        with self._lock:
            existing = self._entries.get(record.id)
            if existing is None:
                raise NotFoundException(record.id)
            self._check_not_pending(record.id)

            record.date_created = existing.date_created
            record.date_updated = now_utc()
            if record.archive_path != existing.archive_path and record.size_bytes is None and record.archive_path:
                record.calculate_size()

            validate(record)
            self._call_backend(self.backend.save, record)

            entries = dict(self._entries)
            entries[record.id] = record
            self._entries = entries

        logger.info("Metadata replaced", id=record.id, title=record.title)
        return record.copy()

    def set_deployed_path(self, entry_id, deployed_path):
        """Record (or clear, with None) where an entry is materialized"""
        with self._lock:
            existing = self._entries.get(entry_id)
            if existing is None:
                raise NotFoundException(entry_id)

            record = existing.copy()
            record.deployed_path = deployed_path
            record.date_updated = now_utc()
            self._call_backend(self.backend.save, record)

            entries = dict(self._entries)
            entries[entry_id] = record
            self._entries = entries

        return record.copy()

    def delete(self, entry_id) -> bool:
        """Remove an entry. Deleting an unknown id is a no-op returning False"""
        with self._lock:
            if entry_id not in self._entries:
                return False
            self._check_not_pending(entry_id)
            self._call_backend(self.backend.delete, entry_id)

            entries = dict(self._entries)
            del entries[entry_id]
            self._entries = entries

        logger.info("Metadata deleted", id=entry_id)
        return True

    def reload(self):
        """Re-read the backend and replace the snapshot wholesale"""
        with self._lock:
            entries = self._call_backend(self.backend.load_all)
            self._entries = dict(entries)
        logger.info("Library reloaded", entries=len(entries))
        return self.get_all()

    def _export_path(self, path=None):
        if path:
            return path
        if not self.data_dir:
            raise StorageException("No data directory configured for export")
        return os.path.join(self.data_dir, LIBRARY_EXPORT_FILE)

    def export(self, path=None):
        """Dump the catalog as pretty JSON, returns the written path"""
        path = self._export_path(path)
        entries = sorted(self._entries.values(), key=lambda r: r.date_created)
        try:
            safe_write_json(path, {"entries": [r.to_dict() for r in entries]})
        except OSError as e:
            raise StorageException(f"Failed to export library to {path}: {e}") from e
        logger.info("Library exported", path=path, entries=len(entries))
        return path

    def import_(self, path=None) -> bool:
        """Upsert every entry of an exported file. Nothing is written if one entry is invalid"""
        path = self._export_path(path)
        if not os.path.isfile(path):
            logger.warning("Exported library file not exists", path=path)
            return False

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageException(f"Failed to read library export {path}: {e}") from e

        now = now_utc()
        records = []
        for data in raw.get("entries", []):
            record = self._normalized(Metadata.from_dict(data))
            if record.id is None:
                record.id = new_metadata_id()
            record.date_created = record.date_created or now
            record.date_updated = record.date_updated or now
            validate(record)
            records.append(record)

        logger.info("Trying to import entries", count=len(records), path=path)
        with self._lock:
            for record in records:
                self._check_not_pending(record.id)
            if hasattr(self.backend, "save_many"):
                self._call_backend(self.backend.save_many, records)
            else:
                for record in records:
                    self._call_backend(self.backend.save, record)

            entries = dict(self._entries)
            entries.update({r.id: r for r in records})
            self._entries = entries

        logger.info("Library imported", path=path)
        return True
