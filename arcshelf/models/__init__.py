"""
Models package

Database models live in separate files:
- metadata_entry.py
"""

from .metadata_entry import MetadataEntry

__all__ = [
    "MetadataEntry",
]
