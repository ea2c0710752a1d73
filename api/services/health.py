"""
Health Check Service

Reports the health of the complaint store and the evidence bucket, both of
which live in MongoDB.
"""

import os
import time
from datetime import datetime, timezone
from typing import Dict, Any
from opentelemetry import trace

from services.mongodb import MongoDBService

tracer = trace.get_tracer(__name__)


class HealthCheckService:
    """Service for dependency health monitoring."""

    def __init__(self, mongodb_service: MongoDBService, service_version: str = None):
        self.mongodb_service = mongodb_service
        self.service_version = service_version or os.getenv('SERVICE_VERSION', '1.0.0')

    def get_health(self) -> Dict[str, Any]:
        """Health document with the overall status and dependency detail."""
        with tracer.start_as_current_span("health.check") as span:
            start_time = time.time()

            mongodb_health = self._check_mongodb_health()
            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": mongodb_health["status"],
                "service": "complaint-lifecycle-api",
                "version": self.service_version,
                "environment": os.getenv('ENVIRONMENT', 'development'),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "mongodb": mongodb_health
                },
                "feature_flags": {
                    "docs_enabled": os.getenv('DOCS_ENABLED', 'true').lower() == 'true',
                    "otel_enabled": os.getenv('OTEL_ENABLED', 'true').lower() == 'true'
                }
            }

            span.set_attributes({
                "health.overall_status": health_data["status"],
                "health.response_time_ms": response_time_ms
            })
            return health_data

    def _check_mongodb_health(self) -> Dict[str, Any]:
        with tracer.start_as_current_span("health.mongodb_check") as span:
            start_time = time.time()
            health_info = self.mongodb_service.health_check()
            health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
            health_info["last_check"] = datetime.now(timezone.utc).isoformat()
            span.set_attribute("mongodb.status", health_info["status"])
            return health_info
