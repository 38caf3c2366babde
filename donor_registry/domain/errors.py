# SPDX-License-Identifier: Apache-2.0

"""
Typed failures raised by the donor registry core.

Each error carries an ``ErrorKind`` and the HTTP status the routing layer
answers with, so handlers never inspect messages to classify a failure.
"""

from typing import Any, Dict, List, Optional

from ..models.enums import ErrorKind


class DonorRegistryError(Exception):
    """Base class for registry failures."""

    kind: ErrorKind = ErrorKind.STORE_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class FileNotFound(DonorRegistryError):
    """The CSV path does not resolve to a readable file."""

    kind = ErrorKind.FILE_NOT_FOUND
    status_code = 400

    def __init__(self, file_path: str):
        super().__init__(f"CSV file not found at path: {file_path}")
        self.file_path = file_path


class NoValidRecords(DonorRegistryError):
    """A CSV import produced no candidate rows."""

    kind = ErrorKind.NO_VALID_RECORDS
    status_code = 422

    def __init__(self, parse_errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__("No valid donor records found in CSV")
        self.parse_errors = parse_errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.parse_errors
        return data


class CSVReadError(DonorRegistryError):
    """The CSV stream could not be decoded or parsed."""

    kind = ErrorKind.CSV_READ_ERROR
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(f"CSV reading error: {reason}")


class DuplicateEmail(DonorRegistryError):
    """Another donor already uses this email."""

    kind = ErrorKind.DUPLICATE_EMAIL
    status_code = 409

    def __init__(self, email: Optional[str] = None):
        super().__init__("Email already exists")
        self.email = email


class InvalidIdentifier(DonorRegistryError):
    """The identifier is not a well-formed store key."""

    kind = ErrorKind.INVALID_IDENTIFIER
    status_code = 400

    def __init__(self, donor_id: Any):
        super().__init__("Invalid donor ID format")
        self.donor_id = donor_id


class NotFound(DonorRegistryError):
    """No donor exists with the identifier."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, donor_id: Any):
        super().__init__("Donor not found")
        self.donor_id = donor_id


class DonorValidationError(DonorRegistryError):
    """The donor data failed schema validation."""

    kind = ErrorKind.VALIDATION_ERROR
    status_code = 422

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class StoreError(DonorRegistryError):
    """Any other failure reported by the record store."""

    kind = ErrorKind.STORE_ERROR
    status_code = 500
