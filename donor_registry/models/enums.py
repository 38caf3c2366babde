# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the donor registry.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the registry core."""
    FILE_NOT_FOUND = "file_not_found"
    NO_VALID_RECORDS = "no_valid_records"
    PARSE_ERROR = "parse_error"
    DUPLICATE_EMAIL = "duplicate_email"
    INVALID_IDENTIFIER = "invalid_identifier"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    CSV_READ_ERROR = "csv_read_error"
    STORE_ERROR = "store_error"


class ImportIssueKind(str, Enum):
    """Per-row outcome recorded in an import report."""
    PARSE_ERROR = "parse_error"
    FAILED = "failed"
    DUPLICATE = "duplicate"


class ImportOutcome(str, Enum):
    """Result of persisting a single candidate row."""
    SUCCESSFUL = "successful"
    DUPLICATE = "duplicate"
    FAILED = "failed"
