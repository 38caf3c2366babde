# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the donor registry.

Holds the CSV ingestion pipeline, the donor query service and the typed
errors both raise. Storage is reached only through the record store adapter.
"""

from .errors import (
    DonorRegistryError,
    FileNotFound,
    NoValidRecords,
    CSVReadError,
    DuplicateEmail,
    InvalidIdentifier,
    NotFound,
    DonorValidationError,
    StoreError
)
from .donors import DonorFilters, DonorService, build_donor_query, build_statistics_pipeline
from .ingestion import DonorCSVImporter

__all__ = [
    "DonorRegistryError",
    "FileNotFound",
    "NoValidRecords",
    "CSVReadError",
    "DuplicateEmail",
    "InvalidIdentifier",
    "NotFound",
    "DonorValidationError",
    "StoreError",
    "DonorFilters",
    "DonorService",
    "build_donor_query",
    "build_statistics_pipeline",
    "DonorCSVImporter"
]
