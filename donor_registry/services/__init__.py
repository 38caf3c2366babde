# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - External integrations and side effects.
"""

from .mongodb import (
    MongoDBService,
    DonorStore,
    StoreOperationError,
    DuplicateKeySignal,
    MalformedIdError,
    RecordValidationError
)
from .hal import HalFormatter, create_hal_formatter
from .health import HealthCheckService

__all__ = [
    "MongoDBService",
    "DonorStore",
    "StoreOperationError",
    "DuplicateKeySignal",
    "MalformedIdError",
    "RecordValidationError",
    "HalFormatter",
    "create_hal_formatter",
    "HealthCheckService"
]
