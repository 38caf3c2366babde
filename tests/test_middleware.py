# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for middleware functionality.
"""

import json
import pytest
import logging
from unittest.mock import MagicMock
from flask import Flask

from donor_registry.domain.errors import DonorValidationError, NoValidRecords
from donor_registry.middleware.cors import CORSMiddleware, configure_cors
from donor_registry.middleware.error_handler import ErrorHandlerMiddleware
from donor_registry.observability.config import StructuredFormatter
from donor_registry.services.hal import HalFormatter
from donor_registry.services.health import HealthCheckService


class TestErrorHandlerMiddleware:
    """Test error handler middleware functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.app = Flask(__name__)
        self.app.config['ENVIRONMENT'] = 'production'
        ErrorHandlerMiddleware(self.app, HalFormatter("https://api.example.com"))

        @self.app.route('/validation')
        def validation():
            raise DonorValidationError(
                "Donor validation failed",
                [{"field": "email", "message": "Email cannot be empty", "type": "value_error"}]
            )

        @self.app.route('/no-records')
        def no_records():
            raise NoValidRecords([{"line": 2, "error": "Missing required fields (name or email)"}])

        @self.app.route('/crash')
        def crash():
            raise KeyError("secret internals")

        self.client = self.app.test_client()

    def test_validation_error(self):
        response = self.client.get('/validation')

        assert response.status_code == 422
        data = json.loads(response.data)
        assert data["kind"] == "validation_error"
        assert data["errors"][0]["field"] == "email"

    def test_no_valid_records_lists_parse_errors(self):
        response = self.client.get('/no-records')

        assert response.status_code == 422
        data = json.loads(response.data)
        assert data["detail"] == "No valid donor records found in CSV"
        assert data["errors"][0]["line"] == 2

    def test_unexpected_error_hides_details_in_production(self):
        response = self.client.get('/crash')

        assert response.status_code == 500
        data = json.loads(response.data)
        assert data["detail"] == "An unexpected error occurred"
        assert "secret" not in response.get_data(as_text=True)

    def test_method_not_allowed(self):
        response = self.client.post('/validation')

        assert response.status_code == 405
        assert json.loads(response.data)["type"].endswith("/method-not-allowed")


class TestCORSMiddleware:
    """Test CORS middleware functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.app = Flask(__name__)

        @self.app.route('/api/donors')
        def donors():
            return {"total": 0}

    def test_is_origin_allowed(self):
        cors = CORSMiddleware(self.app, allowed_origins=["http://localhost:5173", "https://*"])

        assert cors.is_origin_allowed("http://localhost:5173") is True
        assert cors.is_origin_allowed("https://donors.example.org") is True
        assert cors.is_origin_allowed("http://evil.example.com") is False
        assert cors.is_origin_allowed("") is False

    def test_allow_all_origins(self):
        cors = CORSMiddleware(self.app, allow_all_origins=True)

        assert cors.is_origin_allowed("http://anything.example.com") is True

    def test_headers_added_for_allowed_origin(self):
        CORSMiddleware(self.app, allowed_origins=["http://localhost:5173"])
        client = self.app.test_client()

        response = client.get('/api/donors', headers={'Origin': 'http://localhost:5173'})

        assert response.headers['Access-Control-Allow-Origin'] == 'http://localhost:5173'
        assert 'PUT' in response.headers['Access-Control-Allow-Methods']

    def test_preflight_rejected_for_unknown_origin(self):
        CORSMiddleware(self.app, allowed_origins=["http://localhost:5173"])
        client = self.app.test_client()

        response = client.options('/api/donors', headers={'Origin': 'http://evil.example.com'})

        assert response.status_code == 403
        assert 'Access-Control-Allow-Origin' not in response.headers

    def test_preflight_answered_for_allowed_origin(self):
        CORSMiddleware(self.app, allowed_origins=["http://localhost:5173"], max_age=600)
        client = self.app.test_client()

        response = client.options('/api/donors', headers={'Origin': 'http://localhost:5173'})

        assert response.status_code == 204
        assert response.headers['Access-Control-Allow-Methods'] == 'GET, POST, PUT, DELETE, OPTIONS'
        assert response.headers['Access-Control-Max-Age'] == '600'
        assert response.headers['Access-Control-Expose-Headers'] == 'X-Trace-Id'
        assert 'Access-Control-Allow-Credentials' not in response.headers

    def test_methods_are_not_configurable(self):
        with pytest.raises(TypeError):
            CORSMiddleware(self.app, allowed_methods=["PATCH"])

    def test_configure_cors_reads_app_config(self):
        self.app.config['CORS_ALLOWED_ORIGINS'] = 'http://a.example.com, http://b.example.com'
        self.app.config['FRONTEND_URL'] = 'http://localhost:5173'

        cors = configure_cors(self.app)

        assert cors.allowed_origins == [
            'http://a.example.com',
            'http://b.example.com',
            'http://localhost:5173'
        ]
        assert cors.allow_all_origins is False


class TestStructuredFormatter:
    """Test JSON log formatting."""

    def test_format_includes_extra_fields(self):
        record = logging.makeLogRecord({
            "name": "donor_registry.domain.ingestion",
            "levelname": "INFO",
            "msg": "Donor CSV import completed",
            "file_path": "/data/donors.csv",
            "successful": 3
        })

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "Donor CSV import completed"
        assert payload["level"] == "INFO"
        assert payload["file_path"] == "/data/donors.csv"
        assert payload["successful"] == 3
        assert "trace_id" not in payload


class TestHealthCheckService:
    """Test health reporting."""

    def test_healthy_store(self):
        mongodb_service = MagicMock()
        mongodb_service.health_check.return_value = {"status": "healthy", "database": "donor_registry_test"}

        health = HealthCheckService(mongodb_service, "test").get_health()

        assert health["status"] == "healthy"
        assert health["environment"] == "test"
        assert "response_time_ms" in health["dependencies"]["mongodb"]
        assert "memory" in health["system_metrics"]

    def test_unhealthy_store(self):
        mongodb_service = MagicMock()
        mongodb_service.health_check.return_value = {"status": "unhealthy", "error": "No servers available"}

        health = HealthCheckService(mongodb_service).get_health()

        assert health["status"] == "unhealthy"
        assert health["dependencies"]["mongodb"]["error"] == "No servers available"
