"""
ArcShelf - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class ArcShelfException(Exception):
    """Base exception for ArcShelf"""
    status_code = 400

    def __init__(self, message: str, code: str = "ARCSHELF_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'error': True,
            'code': self.code,
            'message': self.message
        }


class ValidationException(ArcShelfException):
    """A record field failed validation"""
    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}", code="VALIDATION_ERROR")
        logger.warning(f"Validation error: {self.message}")

    def to_dict(self):
        data = super().to_dict()
        data['field'] = self.field
        return data


class DuplicateIdException(ArcShelfException):
    """Caller supplied an id that already exists"""
    status_code = 409

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Metadata with id {entry_id} already exists", code="DUPLICATE_ID")
        logger.warning(f"Duplicate id: {entry_id}")


class NotFoundException(ArcShelfException):
    status_code = 404

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Metadata with id {entry_id} not found", code="NOT_FOUND")
        logger.warning(f"Not found: {entry_id}")


class DeploymentException(ArcShelfException):
    """Base for deployment state machine violations"""
    status_code = 409

    def __init__(self, message: str, entry_id: str, code: str):
        self.entry_id = entry_id
        super().__init__(message, code=code)
        logger.warning(f"Deployment error for {entry_id}: {message}")


class NoArchiveException(DeploymentException):
    def __init__(self, entry_id: str, title: str = None):
        super().__init__(f"Trying to deploy '{title or entry_id}' without an archive path", entry_id, "NO_ARCHIVE")


class AlreadyDeployedException(DeploymentException):
    def __init__(self, entry_id: str, deployed_path: str = None):
        self.deployed_path = deployed_path
        super().__init__(
            f"Metadata {entry_id} is already deployed at {deployed_path}", entry_id, "ALREADY_DEPLOYED"
        )


class NotDeployedException(DeploymentException):
    def __init__(self, entry_id: str):
        super().__init__(f"Metadata {entry_id} is not deployed", entry_id, "NOT_DEPLOYED")


class BusyException(DeploymentException):
    """Another deploy/undeploy is already running for this entry"""
    status_code = 423

    def __init__(self, entry_id: str):
        super().__init__(f"A deployment operation is already in progress for {entry_id}", entry_id, "BUSY")


class StorageException(ArcShelfException):
    """Backing store unreachable or failed"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")
        logger.error(f"Storage error: {message}")


class ArchiveEngineException(ArcShelfException):
    """Archive engine failed to extract, remove or compress"""
    status_code = 502

    def __init__(self, message: str):
        super().__init__(message, code="ARCHIVE_ERROR")
        logger.error(f"Archive engine error: {message}")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'error': True,
            'code': e.name.upper().replace(' ', '_'),
            'message': e.description
        }), e.code

    @app.errorhandler(ArcShelfException)
    def handle_arcshelf_exception(e):
        """Handle ArcShelf exceptions, each class carries its own status"""
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'error': True,
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred'
        }), 500
