"""
Complaint Lifecycle API - Flask Application Entry Point

This module initializes the Flask application with OpenAPI 3.0 support,
configures middleware, and wires the confirmation workflow services.
"""

import os
from typing import Any, Dict, Optional
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag
from observability.config import setup_observability
from observability.middleware import add_observability_middleware

from middleware.error_handler import register_custom_error_handlers
from services.auth import AuthService
from services.complaint_store import ComplaintStore
from services.geo import GeoResolver
from services.geocoding import GeocoderConfig, NominatimGeocoder
from services.hal import create_hal_formatter
from services.health import HealthCheckService
from services.lifecycle import LifecycleEngine
from models.base import utcnow
from services.mongodb import MongoDBService
from services.storage import EvidenceStorageService

# OpenAPI info
info = Info(
    title="Complaint Lifecycle API",
    version=os.getenv('SERVICE_VERSION', '1.0.0'),
    description="Citizen confirmation workflow for complaint status changes with HAL affordances"
)

tags = [
    Tag(name="Complaints", description="Complaint confirmation workflow"),
    Tag(name="Evidence", description="Public evidence objects"),
    Tag(name="Health", description="System health and status")
]


def load_config() -> Dict[str, Any]:
    """Application settings from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')
    return {
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'DOCS_ENABLED': os.getenv('DOCS_ENABLED', 'true').lower() == 'true',
        'OTEL_ENABLED': os.getenv('OTEL_ENABLED', 'true').lower() == 'true',
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/complaints_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'complaints_dev'),
        'PUBLIC_BASE_URL': os.getenv('PUBLIC_BASE_URL', 'http://localhost:5000'),
        'EVIDENCE_BUCKET': os.getenv('EVIDENCE_BUCKET', 'evidence'),
        'SERVICE_VERSION': os.getenv('SERVICE_VERSION', '1.0.0'),
        # Evidence photos plus form fields
        'MAX_CONTENT_LENGTH': int(os.getenv('MAX_UPLOAD_BYTES', str(16 * 1024 * 1024))),
    }


def create_app(config: Optional[Dict[str, Any]] = None, services: Optional[Dict[str, Any]] = None) -> OpenAPI:
    """
    Build the application.

    Args:
        config: Overrides for values read from the environment
        services: Pre-built collaborators keyed by attribute name
            (mongodb_service, complaint_store, evidence_storage, geo_resolver,
            clock, engine_factory, auth_service, health_service)

    Returns:
        Configured Flask application
    """
    app = OpenAPI(__name__, info=info, tags=tags)
    app.config.update(load_config())
    app.config.update(config or {})

    add_observability_middleware(app)

    services = dict(services or {})
    mongodb_service = services.get('mongodb_service') or MongoDBService(
        app.config['MONGODB_URI'],
        app.config['MONGODB_DATABASE']
    )
    complaint_store = services.get('complaint_store') or ComplaintStore(mongodb_service)
    evidence_storage = services.get('evidence_storage') or EvidenceStorageService(
        mongodb_service,
        public_base_url=app.config['PUBLIC_BASE_URL'],
        bucket_name=app.config['EVIDENCE_BUCKET']
    )
    geo_resolver = services.get('geo_resolver') or GeoResolver(NominatimGeocoder(GeocoderConfig.from_env()))
    clock = services.get('clock') or utcnow

    def build_engine() -> LifecycleEngine:
        # One engine per citizen session; snapshots are never shared
        return LifecycleEngine(complaint_store, evidence_storage, geo_resolver, clock=clock)

    hal_formatter = create_hal_formatter(app.config['PUBLIC_BASE_URL'])
    register_custom_error_handlers(app, hal_formatter)

    # Make services available to routes
    app.mongodb_service = mongodb_service
    app.complaint_store = complaint_store
    app.evidence_storage = evidence_storage
    app.geo_resolver = geo_resolver
    app.clock = clock
    app.engine_factory = services.get('engine_factory') or build_engine
    app.auth_service = services.get('auth_service') or AuthService()
    app.health_service = services.get('health_service') or HealthCheckService(
        mongodb_service,
        app.config['SERVICE_VERSION']
    )
    app.hal_formatter = hal_formatter

    from routes.complaints import complaints_bp, evidence_bp
    app.register_blueprint(complaints_bp)
    app.register_blueprint(evidence_bp)

    @app.route('/api/healthz')
    def health_check():
        """Health check endpoint with MongoDB dependency status"""
        health_data = app.health_service.get_health()
        health_data['_links'] = {
            'self': hal_formatter.builder.link_builder.build_link(
                '/api/healthz', title="Self"
            ).model_dump(exclude_none=True)
        }
        status_code = 200 if health_data["status"] == "healthy" else 503
        return jsonify(health_data), status_code

    return app


# Initialize observability first
setup_observability()

app = create_app()


if __name__ == '__main__':
    # Development server
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
