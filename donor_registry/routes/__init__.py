# SPDX-License-Identifier: Apache-2.0

"""
Routes package - HTTP endpoints of the donor registry API.
"""

from .donors import donors_bp
from .health import health_bp

__all__ = ["donors_bp", "health_bp"]
