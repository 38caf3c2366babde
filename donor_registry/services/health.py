"""
Health Check Service

Reports the health of the donor registry's record store together with
basic process and host metrics.
"""

import os
import time
import psutil
from datetime import datetime, timezone
from typing import Dict, Any
from opentelemetry import trace
from pymongo.errors import PyMongoError

from .mongodb import MongoDBService

tracer = trace.get_tracer(__name__)

SERVICE_NAME = "donor-registry-api"
SERVICE_VERSION = "1.0.0"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class HealthCheckService:
    """Service for record store and host health monitoring."""

    def __init__(self, mongodb_service: MongoDBService, environment: str = "development"):
        self.mongodb_service = mongodb_service
        self.environment = environment
        self.service_version = SERVICE_VERSION

    def get_health(self) -> Dict[str, Any]:
        """Get overall health status with dependency details."""
        with tracer.start_as_current_span("health.check") as span:
            start_time = time.time()

            mongodb_health = self._check_mongodb_health()
            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": mongodb_health["status"],
                "service": SERVICE_NAME,
                "version": self.service_version,
                "environment": self.environment,
                "timestamp": _timestamp(),
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "mongodb": mongodb_health
                },
                "system_metrics": self._get_system_metrics()
            }

            span.set_attributes({
                "health.overall_status": health_data["status"],
                "health.response_time_ms": response_time_ms
            })

            return health_data

    def _check_mongodb_health(self) -> Dict[str, Any]:
        """Check MongoDB connectivity."""
        with tracer.start_as_current_span("health.mongodb_check") as span:
            start_time = time.time()
            try:
                health = self.mongodb_service.health_check()
            except PyMongoError as e:
                span.record_exception(e)
                health = {"status": "unhealthy", "error": str(e)}

            health["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
            health["last_check"] = _timestamp()
            span.set_attribute("mongodb.status", health["status"])
            return health

    def _get_system_metrics(self) -> Dict[str, Any]:
        """Get basic process and host metrics."""
        try:
            memory = psutil.virtual_memory()
            process = psutil.Process(os.getpid())

            return {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory": {
                    "used_mb": round(memory.used / 1024 / 1024, 2),
                    "total_mb": round(memory.total / 1024 / 1024, 2),
                    "percent": memory.percent
                },
                "process": {
                    "pid": process.pid,
                    "rss_mb": round(process.memory_info().rss / 1024 / 1024, 2),
                    "uptime_seconds": round(time.time() - process.create_time(), 2)
                }
            }
        except psutil.Error as e:
            return {
                "error": f"Failed to collect system metrics: {str(e)}"
            }
