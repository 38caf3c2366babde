"""
Donor Registry API - Flask Application Factory

This module builds the Flask application with OpenAPI 3.0 support,
configures middleware, and wires the donor registry services: the MongoDB
record store, the donor query service and the CSV import pipeline.
"""

import os
import logging
from typing import Any, Dict, Optional
from flask_openapi3 import OpenAPI, Info

from .observability.config import setup_observability
from .observability.middleware import add_observability_middleware
from .middleware.cors import configure_cors
from .middleware.error_handler import ErrorHandlerMiddleware
from .services.hal import create_hal_formatter
from .services.health import HealthCheckService
from .services.mongodb import MongoDBService, DonorStore, StoreOperationError
from .domain.donors import DonorService, ELIGIBILITY_WINDOW_DAYS
from .domain.ingestion import DonorCSVImporter
from .routes import donors_bp, health_bp

logger = logging.getLogger(__name__)

# OpenAPI info
info = Info(
    title="Donor Registry API",
    version="1.0.0",
    description="Blood donor registry with bulk CSV import, eligibility filtering and statistics"
)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config() -> Dict[str, Any]:
    """Read the application configuration from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')
    return {
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'DOCS_ENABLED': _env_flag('DOCS_ENABLED', 'true'),
        'OTEL_ENABLED': _env_flag('OTEL_ENABLED', 'true'),

        # Database configuration
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/donor_registry_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'donor_registry_dev'),
        'DONOR_COLLECTION': os.getenv('DONOR_COLLECTION', 'donors'),

        # Registry rules
        'ELIGIBILITY_WINDOW_DAYS': int(os.getenv('ELIGIBILITY_WINDOW_DAYS', str(ELIGIBILITY_WINDOW_DAYS))),

        # API configuration
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:3001'),
        'PORT': int(os.getenv('PORT', '3001')),

        # CORS configuration
        'CORS_ALLOWED_ORIGINS': os.getenv('CORS_ALLOWED_ORIGINS', ''),
        'CORS_ALLOW_ALL_ORIGINS': _env_flag('CORS_ALLOW_ALL_ORIGINS', 'false'),
        'FRONTEND_URL': os.getenv('FRONTEND_URL')
    }


def create_app(
    config: Optional[Dict[str, Any]] = None,
    donor_service: Optional[DonorService] = None,
    donor_importer: Optional[DonorCSVImporter] = None,
    mongodb_service: Optional[MongoDBService] = None
) -> OpenAPI:
    """
    Build the donor registry application.

    Args:
        config: Overrides applied on top of the environment configuration
        donor_service: Prebuilt query service, mainly for tests
        donor_importer: Prebuilt CSV importer, mainly for tests
        mongodb_service: Prebuilt MongoDB connection holder

    Returns:
        Configured Flask application
    """
    settings = load_config()
    settings.update(config or {})

    # Initialize observability first
    setup_observability(settings['ENVIRONMENT'], settings['OTEL_ENABLED'])

    # Create Flask app with OpenAPI
    app = OpenAPI(__name__, info=info, doc_ui=settings['DOCS_ENABLED'])
    app.config.update(settings)

    add_observability_middleware(
        app,
        instrument=settings['OTEL_ENABLED'] and settings['ENVIRONMENT'] != 'test'
    )

    # Initialize services
    if mongodb_service is None:
        mongodb_service = MongoDBService(settings['MONGODB_URI'], settings['MONGODB_DATABASE'])
    if donor_service is None:
        store = DonorStore(mongodb_service, settings['DONOR_COLLECTION'])
        try:
            store.ensure_indexes()
        except StoreOperationError as e:
            logger.error(f"Could not create donor indexes, email uniqueness is not enforced: {e.message}")
        donor_service = DonorService(store, eligibility_days=settings['ELIGIBILITY_WINDOW_DAYS'])
    if donor_importer is None:
        donor_importer = DonorCSVImporter(donor_service.store)
    health_service = HealthCheckService(mongodb_service, settings['ENVIRONMENT'])

    # Initialize middleware
    hal_formatter = create_hal_formatter(settings['BASE_URL'])
    ErrorHandlerMiddleware(app, hal_formatter)
    configure_cors(app)

    # Make services available to routes
    app.mongodb_service = mongodb_service
    app.donor_service = donor_service
    app.donor_importer = donor_importer
    app.health_service = health_service
    app.hal_formatter = hal_formatter

    # Register routes
    app.register_api(donors_bp)
    app.register_api(health_bp)

    return app


def main():
    """Run the development server."""
    app = create_app()
    app.run(
        host='0.0.0.0',
        port=app.config['PORT'],
        debug=app.config['DEBUG']
    )


if __name__ == '__main__':
    main()
