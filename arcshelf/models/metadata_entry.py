"""
Model: MetadataEntry - persisted row of a catalog record
"""

from arcshelf.db import db


class MetadataEntry(db.Model):
    """One catalog record. Platform is split into kind + external id, tags are JSON."""

    __tablename__ = "metadata_entry"

    id = db.Column(db.String, primary_key=True)
    title = db.Column(db.String, nullable=False)
    original_title = db.Column(db.String)
    content_type = db.Column(db.String(16), nullable=False, default="Unknown")
    platform_kind = db.Column(db.String(16), nullable=False, default="Unknown")
    platform_external_id = db.Column(db.String)
    platform_id = db.Column(db.String)

    description = db.Column(db.Text)
    version = db.Column(db.String)
    developer = db.Column(db.String)
    publisher = db.Column(db.String)
    release_date = db.Column(db.String)  # ISO-8601, kept opaque

    archive_path = db.Column(db.String)
    archive_password = db.Column(db.String)
    size_bytes = db.Column(db.BigInteger)
    deployed_path = db.Column(db.String, index=True)

    tags_json = db.Column(db.JSON)  # [{"name": "RPG", "category": "genre"}]

    date_created = db.Column(db.DateTime(timezone=True), nullable=False)
    date_updated = db.Column(db.DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<MetadataEntry(id={self.id}, title={self.title})>"
