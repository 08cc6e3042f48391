"""
Deployment Controller - Undeployed/Deployed state machine over deployed_path

An entry is Deployed exactly when its deployed_path is non-empty. The archive
engine runs outside the catalog lock; the catalog's pending markers keep any
other mutation of the same entry out while other entries stay available.
"""

from contextlib import contextmanager

import structlog

from arcshelf.exceptions import (
    AlreadyDeployedException,
    ArchiveEngineException,
    ArcShelfException,
    NoArchiveException,
    NotDeployedException,
    ValidationException,
)

logger = structlog.get_logger('deployment')


class DeploymentController:
    def __init__(self, catalog, engine):
        self.catalog = catalog
        self.engine = engine

    def is_pending(self, entry_id):
        return self.catalog.is_pending(entry_id)

    def _run_engine(self, method, *args):
        try:
            method(*args)
        except ArcShelfException:
            raise
        except OSError as e:
            raise ArchiveEngineException(str(e)) from e

    @contextmanager
    def _in_flight(self, entry_id):
        self.catalog.mark_pending(entry_id)
        try:
            yield
        finally:
            self.catalog.release(entry_id)

    def _undo_extract(self, entry_id, target_path):
        try:
            self._run_engine(self.engine.remove, target_path)
        except ArcShelfException as e:
            logger.error("Failed to remove extracted files", id=entry_id, target=target_path, error=str(e))

    def deploy(self, entry_id, target_path):
        """Materialize an entry's archive at target_path"""
        if not isinstance(target_path, str) or not target_path.strip():
            raise ValidationException("target_path", "must be a non-empty path")

        with self._in_flight(entry_id):
            record = self.catalog.get(entry_id)
            if record.is_deployed:
                raise AlreadyDeployedException(entry_id, record.deployed_path)
            if not record.archive_path:
                raise NoArchiveException(entry_id, record.title)

            logger.info("Deploying", id=entry_id, archive=record.archive_path, target=target_path)
            self._run_engine(self.engine.extract, record.archive_path, record.archive_password, target_path)

            try:
                updated = self.catalog.set_deployed_path(entry_id, target_path)
            except ArcShelfException:
                # Files are on disk but the catalog still says Undeployed
                self._undo_extract(entry_id, target_path)
                raise

        logger.info("Deployed", id=entry_id, target=target_path)
        return updated

    def undeploy(self, entry_id):
        """Remove the materialized files and mark the entry Undeployed"""
        with self._in_flight(entry_id):
            record = self.catalog.get(entry_id)
            if not record.is_deployed:
                raise NotDeployedException(entry_id)

            logger.info("Deploying off", id=entry_id, path=record.deployed_path)
            self._run_engine(self.engine.remove, record.deployed_path)

            updated = self.catalog.set_deployed_path(entry_id, None)

        logger.info("Deployed off", id=entry_id)
        return updated
