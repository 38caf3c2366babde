# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
CORS middleware for the donor registry's browser frontend.

Only origins from the allow list receive CORS headers. A trailing ``*`` in an
allow list entry matches any origin with that prefix.
"""

from flask import Flask, request, make_response
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

DONOR_API_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'OPTIONS')
DONOR_API_REQUEST_HEADERS = ('Accept', 'Content-Type', 'X-Request-ID')
DONOR_API_EXPOSED_HEADERS = ('X-Trace-Id',)


class CORSMiddleware:
    """Origin checks and CORS headers for the donor API."""

    def __init__(
        self,
        app: Flask,
        allowed_origins: Optional[List[str]] = None,
        allow_all_origins: bool = False,
        max_age: int = 86400
    ):
        self.app = app
        self.allowed_origins = allowed_origins or []
        self.allow_all_origins = allow_all_origins
        self.max_age = max_age

        app.before_request(self._answer_preflight)
        app.after_request(self._decorate_response)

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        """Whether a request origin may read donor API responses."""
        if not origin:
            return False
        if self.allow_all_origins:
            return True

        for entry in self.allowed_origins:
            if entry.endswith('*'):
                if origin.startswith(entry[:-1]):
                    return True
            elif origin == entry:
                return True
        return False

    def _apply_headers(self, response, origin: str):
        headers = response.headers
        headers['Access-Control-Allow-Origin'] = origin
        headers['Access-Control-Allow-Methods'] = ', '.join(DONOR_API_METHODS)
        headers['Access-Control-Allow-Headers'] = ', '.join(DONOR_API_REQUEST_HEADERS)
        headers['Access-Control-Expose-Headers'] = ', '.join(DONOR_API_EXPOSED_HEADERS)
        headers['Access-Control-Max-Age'] = str(self.max_age)
        headers.add('Vary', 'Origin')
        return response

    def _answer_preflight(self):
        if request.method != 'OPTIONS':
            return None

        origin = request.headers.get('Origin')
        if not self.is_origin_allowed(origin):
            logger.warning(f"CORS preflight rejected for origin: {origin}")
            return make_response('', 403)
        return self._apply_headers(make_response('', 204), origin)

    def _decorate_response(self, response):
        origin = request.headers.get('Origin')
        if not origin or request.method == 'OPTIONS':
            return response

        if self.is_origin_allowed(origin):
            return self._apply_headers(response, origin)
        logger.warning(f"CORS headers withheld for origin: {origin}")
        return response


def configure_cors(app: Flask, **kwargs) -> CORSMiddleware:
    """
    Attach CORS handling to the app.

    Unless passed explicitly, origins come from ``CORS_ALLOWED_ORIGINS``
    (comma separated) plus ``FRONTEND_URL``, and ``CORS_ALLOW_ALL_ORIGINS``
    turns the allow list off.
    """
    if 'allowed_origins' not in kwargs:
        configured = app.config.get('CORS_ALLOWED_ORIGINS') or ''
        origins = [origin.strip() for origin in configured.split(',') if origin.strip()]
        if app.config.get('FRONTEND_URL'):
            origins.append(app.config['FRONTEND_URL'])
        kwargs['allowed_origins'] = origins
    kwargs.setdefault('allow_all_origins', bool(app.config.get('CORS_ALLOW_ALL_ORIGINS', False)))

    logger.info(
        "CORS configured",
        extra={
            "allowed_origins": kwargs['allowed_origins'],
            "allow_all_origins": kwargs['allow_all_origins']
        }
    )
    return CORSMiddleware(app, **kwargs)
