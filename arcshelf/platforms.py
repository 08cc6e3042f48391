"""
Platform identity - canonical storefront tag of a catalog entry
"""

from dataclasses import dataclass
from typing import Optional

from arcshelf.constants import (
    PLATFORM_DLSITE,
    PLATFORM_KINDS,
    PLATFORM_OTHER,
    PLATFORM_STEAM,
    PLATFORM_UNKNOWN,
)

_KIND_LOOKUP = {kind.lower(): kind for kind in PLATFORM_KINDS}


@dataclass(frozen=True)
class Platform:
    kind: str = PLATFORM_UNKNOWN
    external_id: Optional[str] = None

    @property
    def display_name(self):
        """Name shown to users; an Other platform is named by its external id"""
        if self.kind == PLATFORM_OTHER:
            return self.external_id or PLATFORM_OTHER
        return self.kind

    def to_dict(self):
        # Same shape the desktop client sends: {"platform": "Other", "id": "itch.io"}
        data = {"platform": self.kind}
        if self.kind == PLATFORM_OTHER:
            data["id"] = self.external_id
        return data

    @classmethod
    def from_dict(cls, data):
        if data is None:
            return normalize(PLATFORM_UNKNOWN)
        if isinstance(data, Platform):
            return normalize(data.kind, data.external_id)
        if isinstance(data, str):
            return normalize(data)
        if not isinstance(data, dict):
            return normalize(PLATFORM_UNKNOWN)
        kind = data.get("platform", data.get("kind"))
        external_id = data.get("id", data.get("external_id"))
        return normalize(kind, external_id)


def normalize(kind, raw_external_id=None) -> Platform:
    """
    Normalize a platform tag into a canonical Platform.

    Steam and DLSite entries are identified by the record's platform_id, so any
    external id given here is discarded. Other always carries a string id (empty
    when none was given). Anything unrecognised degrades to Unknown so stored
    data stays loadable.
    """
    if isinstance(kind, Platform):
        kind = kind.kind
    canonical = _KIND_LOOKUP.get(str(kind).strip().lower()) if kind is not None else None

    if canonical in (PLATFORM_STEAM, PLATFORM_DLSITE):
        return Platform(canonical, None)
    if canonical == PLATFORM_OTHER:
        external_id = "" if raw_external_id is None else str(raw_external_id)
        return Platform(PLATFORM_OTHER, external_id)
    return Platform(PLATFORM_UNKNOWN, None)
