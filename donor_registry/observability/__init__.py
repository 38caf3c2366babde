"""
Observability package - tracing and structured logging setup.
"""

from .config import setup_observability, setup_structured_logging, StructuredFormatter
from .middleware import add_observability_middleware

__all__ = [
    "setup_observability",
    "setup_structured_logging",
    "StructuredFormatter",
    "add_observability_middleware"
]
