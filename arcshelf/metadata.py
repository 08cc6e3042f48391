"""
Metadata record - the catalog's unit of identity, and its validation rules
"""

import copy
import logging
import os
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from arcshelf.constants import CONTENT_TYPES, CONTENT_TYPE_UNKNOWN, DEFAULT_VERSION, PLATFORM_OTHER
from arcshelf.exceptions import DuplicateIdException, ValidationException
from arcshelf.platforms import Platform
from arcshelf.utils import ensure_utc, format_size_py, isoformat

logger = logging.getLogger("main")


def new_metadata_id():
    return str(uuid.uuid4())


@dataclass
class Tag:
    name: str
    category: Optional[str] = None

    def to_dict(self):
        return {"name": self.name, "category": self.category}

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, Tag):
            return cls(data.name, data.category)
        if isinstance(data, str):
            return cls(data)
        if not isinstance(data, dict):
            raise ValidationException("tags", "each tag must be a name or an object with a name")
        return cls(name=data.get("name"), category=data.get("category"))


@dataclass
class Metadata:
    title: str
    id: Optional[str] = None
    original_title: Optional[str] = None
    content_type: str = CONTENT_TYPE_UNKNOWN
    platform: Platform = field(default_factory=Platform)
    platform_id: Optional[str] = None

    description: Optional[str] = None
    version: Optional[str] = DEFAULT_VERSION
    developer: Optional[str] = None
    publisher: Optional[str] = None
    release_date: Optional[str] = None

    archive_path: Optional[str] = None
    archive_password: Optional[str] = None
    size_bytes: Optional[int] = None

    deployed_path: Optional[str] = None

    tags: List[Tag] = field(default_factory=list)

    date_created: Optional[datetime] = None
    date_updated: Optional[datetime] = None

    @property
    def is_deployed(self) -> bool:
        return bool(self.deployed_path)

    def copy(self) -> "Metadata":
        return copy.deepcopy(self)

    def sync_platform_id(self):
        """platform.external_id is authoritative for Other platforms"""
        if self.platform.kind == PLATFORM_OTHER:
            self.platform_id = self.platform.external_id

    def calculate_size(self) -> bool:
        """Set size_bytes from the archive file, or the sum of files when it is a folder"""
        if not self.archive_path:
            logger.warning(f"Trying to calculate size of '{self.title}' without an archive path")
            return False

        if os.path.isfile(self.archive_path):
            self.size_bytes = os.path.getsize(self.archive_path)
        elif os.path.isdir(self.archive_path):
            total = 0
            for root, _dirs, files in os.walk(self.archive_path):
                for name in files:
                    try:
                        total += os.path.getsize(os.path.join(root, name))
                    except OSError as e:
                        logger.warning(f"Skipping unreadable file {name}: {e}")
            self.size_bytes = total
        else:
            logger.warning(f"Trying to calculate size of '{self.title}' without a valid archive path: {self.archive_path}")
            return False

        logger.info(f"Calculated size of {self.archive_path}: {format_size_py(self.size_bytes)}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "original_title": self.original_title,
            "content_type": self.content_type,
            "platform": self.platform.to_dict(),
            "platform_id": self.platform_id,
            "description": self.description,
            "version": self.version,
            "developer": self.developer,
            "publisher": self.publisher,
            "release_date": self.release_date,
            "archive_path": self.archive_path,
            "archive_password": self.archive_password,
            "size_bytes": self.size_bytes,
            "deployed_path": self.deployed_path,
            "tags": [t.to_dict() for t in self.tags],
            "date_created": isoformat(self.date_created),
            "date_updated": isoformat(self.date_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metadata":
        """Build a record from its serialized form; unknown keys are ignored"""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}

        values["platform"] = Platform.from_dict(data.get("platform"))
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ValidationException("tags", "must be a list")
        values["tags"] = [Tag.from_dict(t) for t in tags]
        values["date_created"] = ensure_utc(data.get("date_created"))
        values["date_updated"] = ensure_utc(data.get("date_updated"))
        if values.get("content_type") is None:
            values["content_type"] = CONTENT_TYPE_UNKNOWN
        if "title" not in values:
            values["title"] = ""

        record = cls(**values)
        record.sync_platform_id()
        return record


def _check_optional_path(value, field_name):
    if value is None:
        return
    if not isinstance(value, str) or not value.strip():
        raise ValidationException(field_name, "must be a non-empty path when present")


def validate(record: Metadata, existing_ids: Optional[Iterable[str]] = None):
    """
    Check a record against the catalog rules, raising on the first violation.

    Pass existing_ids on creation so a colliding id is reported as a duplicate.
    No filesystem checks happen here; paths are only checked at deploy time.
    """
    if not isinstance(record.title, str) or not record.title.strip():
        raise ValidationException("title", "must not be empty")

    if not isinstance(record.id, str) or not record.id.strip():
        raise ValidationException("id", "must not be empty")
    if existing_ids is not None and record.id in existing_ids:
        raise DuplicateIdException(record.id)

    if record.content_type not in CONTENT_TYPES:
        raise ValidationException("content_type", f"must be one of {', '.join(CONTENT_TYPES)}")

    if not isinstance(record.platform, Platform):
        raise ValidationException("platform", "must be a Platform")

    if record.size_bytes is not None:
        if isinstance(record.size_bytes, bool) or not isinstance(record.size_bytes, int) or record.size_bytes < 0:
            raise ValidationException("size_bytes", "must be a non-negative integer")

    _check_optional_path(record.archive_path, "archive_path")
    _check_optional_path(record.deployed_path, "deployed_path")

    for tag in record.tags or []:
        if not isinstance(tag.name, str) or not tag.name.strip():
            raise ValidationException("tags", "tag name must not be empty")
