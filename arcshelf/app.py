"""
ArcShelf - media archive library manager
App factory, logging setup and the development server entry point
"""
import os
import sys
import logging

from flask import Flask
import structlog

from arcshelf.archive_engine import LocalArchiveEngine
from arcshelf.app_services.library_service import LibraryService
from arcshelf.backup import BackupManager
from arcshelf.catalog import CatalogStore
from arcshelf.constants import ARCSHELF_DB, CONFIG_DIR, DB_FILE
from arcshelf.db import init_db
from arcshelf.deployment import DeploymentController
from arcshelf.exceptions import register_exception_handlers
from arcshelf.repositories.metadata_repository import MetadataRepository
from arcshelf.routes.library import library_bp
from arcshelf.settings import get_data_dir, load_settings
from arcshelf.utils import ColoredFormatter

logger = structlog.get_logger('main')


def configure_logging(level=logging.INFO):
    formatter = ColoredFormatter(
        '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler]
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_app(config=None, settings=None, engine=None):
    """
    Build the Flask app with its catalog, deployment controller and routes.

    config overrides Flask config keys (e.g. SQLALCHEMY_DATABASE_URI, TESTING),
    settings replaces the YAML settings, engine replaces LocalArchiveEngine.
    """
    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = ARCSHELF_DB
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    if config:
        app.config.update(config)

    app_settings = settings or load_settings()
    data_dir = get_data_dir(app_settings)

    if not app.config.get("TESTING") and app.config["SQLALCHEMY_DATABASE_URI"] == ARCSHELF_DB:
        backup_manager = BackupManager(CONFIG_DIR, keep=app_settings["library"].get("backup_keep", 4))
        backup_manager.create_backup(DB_FILE)

    init_db(app)

    if engine is None:
        engine = LocalArchiveEngine(compression_level=app_settings["deployment"].get("compression_level", 9))
    catalog = CatalogStore(backend=MetadataRepository, app=app, data_dir=data_dir)
    catalog.reload()
    deployer = DeploymentController(catalog, engine)

    app.extensions["arcshelf"] = {
        "settings": app_settings,
        "catalog": catalog,
        "deployer": deployer,
        "library_service": LibraryService(catalog, deployer, engine=engine, data_dir=data_dir),
    }

    app.register_blueprint(library_bp)
    register_exception_handlers(app)

    logger.info("ArcShelf ready", entries=len(catalog), data_dir=data_dir)
    return app


def main():
    configure_logging()
    app = create_app()
    host = os.environ.get('ARCSHELF_HOST', '127.0.0.1')
    port = int(os.environ.get('ARCSHELF_PORT', '8465'))
    app.run(host=host, port=port)


if __name__ == '__main__':
    main()
