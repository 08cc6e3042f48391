"""
Library Service - command surface of the catalog

Each library_* method maps 1:1 to a catalog or deployment operation and
returns plain dicts ready for a presentation layer (HTTP routes, CLI, UI).
Failures are raised as ArcShelfException subclasses.
"""

import os
from typing import Any, Dict, Optional

import structlog

from arcshelf.constants import ARCHIVE_DIR_NAME, CONTENT_TYPE_UNKNOWN, CREATED_ARCHIVE_EXTENSION
from arcshelf.exceptions import ValidationException
from arcshelf.metadata import Metadata
from arcshelf.platforms import Platform
from arcshelf.utils import now_utc

logger = structlog.get_logger('library_service')


def serialize_catalog(entries: Dict[str, Metadata]) -> Dict[str, Any]:
    """Catalog as sent to clients: entries ordered by creation date"""
    ordered = sorted(entries.values(), key=lambda r: (r.date_created, r.id))
    return {"entries": [record.to_dict() for record in ordered]}


def _record_from_payload(data) -> Metadata:
    if not isinstance(data, dict):
        raise ValidationException("body", "expected a JSON object")
    return Metadata.from_dict(data)


class LibraryService:
    """Commands invoked by the presentation layer"""

    def __init__(self, catalog, deployer, engine=None, data_dir=None):
        self.catalog = catalog
        self.deployer = deployer
        self.engine = engine
        self.data_dir = data_dir

    def library_get(self) -> Dict[str, Any]:
        return serialize_catalog(self.catalog.get_all())

    def library_reload(self) -> Dict[str, Any]:
        return serialize_catalog(self.catalog.reload())

    def library_add(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Catalog an existing archive (or a manual entry without one)"""
        record = _record_from_payload(data)
        if record.archive_path and record.size_bytes is None:
            record.calculate_size()
        return self.catalog.add(record).to_dict()

    def library_create(
        self,
        title: str,
        from_path: str,
        platform=None,
        platform_id: Optional[str] = None,
        password: Optional[str] = None,
        content_type: str = CONTENT_TYPE_UNKNOWN,
    ) -> Dict[str, Any]:
        """Pack a folder into a new archive under the data dir and catalog it"""
        if not from_path or not os.path.isdir(from_path):
            raise ValidationException("from_path", f"unexpected origin path: {from_path}")
        if self.engine is None or not self.data_dir:
            raise ValidationException("from_path", "archive creation is not configured")

        # Reject a bad title before spending time compressing
        if not isinstance(title, str) or not title.strip():
            raise ValidationException("title", "must not be empty")

        platform = Platform.from_dict(platform)
        record = Metadata(title=title, content_type=content_type, platform=platform, platform_id=platform_id)
        record.sync_platform_id()

        stem = record.platform_id or now_utc().strftime("ANONYMOUS-%Y%m%d-%H%M%S")
        archive_path = os.path.join(
            self.data_dir, ARCHIVE_DIR_NAME, platform.display_name, f"{stem}{CREATED_ARCHIVE_EXTENSION}"
        )
        if os.path.exists(archive_path):
            raise ValidationException("platform_id", f"archive already exists: {archive_path}")

        self.engine.compress(from_path, archive_path, password)
        record.archive_path = archive_path
        record.archive_password = password or None
        record.calculate_size()
        return self.catalog.add(record).to_dict()

    def library_replace(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = _record_from_payload(data)
        if not record.id:
            raise ValidationException("id", "must not be empty")
        return self.catalog.replace(record).to_dict()

    def library_del(self, entry_id: str) -> bool:
        return self.catalog.delete(entry_id)

    def library_deploy(self, entry_id: str, path: str) -> Dict[str, Any]:
        return self.deployer.deploy(entry_id, path).to_dict()

    def library_deploy_off(self, entry_id: str) -> Dict[str, Any]:
        return self.deployer.undeploy(entry_id).to_dict()

    def library_export(self) -> str:
        return self.catalog.export()

    def library_import(self) -> bool:
        imported = self.catalog.import_()
        if imported:
            logger.info("Library import finished", entries=len(self.catalog))
        return imported
