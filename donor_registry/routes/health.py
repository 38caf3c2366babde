# SPDX-License-Identifier: Apache-2.0

"""
Health check endpoint.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
import logging

logger = logging.getLogger(__name__)

health_tag = Tag(name="Health", description="System health and status")
health_bp = APIBlueprint('health', __name__, url_prefix='/api', abp_tags=[health_tag])


@health_bp.get('/healthz')
def health_check():
    """Record store connectivity and host metrics; 503 when the store is unreachable."""
    health_data = current_app.health_service.get_health()

    status_code = 200
    if health_data["status"] != "healthy":
        status_code = 503
        logger.warning(
            "Health check failed",
            extra={"mongodb": health_data.get("dependencies", {}).get("mongodb")}
        )

    return jsonify(health_data), status_code
