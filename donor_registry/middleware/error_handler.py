# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Provides centralized error handling and formatting for Flask applications.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Any, Tuple
from opentelemetry import trace
import logging
import traceback

from ..domain.errors import (
    DonorRegistryError,
    DonorValidationError,
    DuplicateEmail,
    NotFound
)
from ..services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(DonorRegistryError)
        def handle_registry_error(error: DonorRegistryError):
            return self.handle_registry_error(error)

        @self.app.errorhandler(400)
        def handle_bad_request(error):
            return self.handle_client_error(error, "bad-request", "Bad Request")

        @self.app.errorhandler(404)
        def handle_not_found(error):
            return self.handle_client_error(error, "resource-not-found", "Resource Not Found")

        @self.app.errorhandler(405)
        def handle_method_not_allowed(error):
            return self.handle_client_error(error, "method-not-allowed", "Method Not Allowed")

        @self.app.errorhandler(500)
        def handle_internal_server_error(error):
            return self.handle_server_error(error, "internal-server-error", "Internal Server Error")

        # Handle generic exceptions
        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            if isinstance(error, HTTPException):
                return self.handle_client_error(error, "http-error", error.name)
            return self.handle_unexpected_error(error)

    def handle_registry_error(self, error: DonorRegistryError) -> Tuple[Any, int]:
        """
        Handle typed registry failures.

        Args:
            error: Registry error raised by the domain layer

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.registry_error") as span:
            span.set_attributes({
                "error.kind": error.kind.value,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            log = logger.error if error.status_code >= 500 else logger.warning
            log(
                f"Registry error: {error.kind.value}",
                extra={
                    "error_kind": error.kind.value,
                    "status_code": error.status_code,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            kind = error.kind.value
            if isinstance(error, DonorValidationError):
                body = self.hal_formatter.format_validation_error(
                    error.message, request.path, error.errors, kind, error.status_code
                )
            elif isinstance(error, NotFound):
                body = self.hal_formatter.format_not_found_error(error.message, request.path, kind)
            elif isinstance(error, DuplicateEmail):
                body = self.hal_formatter.format_conflict_error(error.message, request.path, kind)
            elif error.status_code >= 500:
                body = self.hal_formatter.format_server_error(error.message, request.path, kind)
            elif error.status_code == 422:
                body = self.hal_formatter.format_validation_error(
                    error.message, request.path, getattr(error, "parse_errors", []), kind
                )
            else:
                body = self.hal_formatter.format_bad_request_error(error.message, request.path, kind)

            return jsonify(body), error.status_code

    def handle_client_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Any, int]:
        """
        Handle client errors (4xx status codes).

        Args:
            error: HTTP exception
            error_type: Error type identifier
            title: Error title

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.client_error") as span:
            status = error.code or 400
            span.set_attributes({
                "error.type": error_type,
                "error.status": status,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.warning(
                f"Client error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": status,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method,
                    "user_agent": request.headers.get('User-Agent'),
                    "ip_address": request.remote_addr
                }
            )

            error_response = self.hal_formatter.builder.build_error_response(
                error_type,
                title,
                status,
                detail,
                request.path
            )

            return jsonify(error_response), status

    def handle_server_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Any, int]:
        """
        Handle server errors (5xx status codes).

        Args:
            error: HTTP exception
            error_type: Error type identifier
            title: Error title

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.server_error") as span:
            status = getattr(error, "code", None) or 500
            span.set_attributes({
                "error.type": error_type,
                "error.status": status,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(getattr(error, "description", "") or title)

            logger.error(
                f"Server error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": status,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            # Don't expose internal error details in production
            if self.app.config.get('ENVIRONMENT') == 'production':
                detail = "An internal server error occurred"

            error_response = self.hal_formatter.format_server_error(detail, request.path)

            return jsonify(error_response), status

    def handle_unexpected_error(self, error: Exception) -> Tuple[Any, int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })

            # Record exception in span
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method,
                    "traceback": traceback.format_exc()
                },
                exc_info=True
            )

            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            error_response = self.hal_formatter.format_server_error(detail, request.path)

            return jsonify(error_response), 500

