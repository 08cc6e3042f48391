"""
Repositories package

Each repository encapsulates database operations for a model:
- metadata_repository.py

Usage:
    from arcshelf.repositories.metadata_repository import MetadataRepository
    records = MetadataRepository.load_all()
"""
