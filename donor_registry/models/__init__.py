# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the donor registry.
"""

# Base models
from .base import BaseEntity, BaseEntityCreate, BaseEntityUpdate

# Enumerations
from .enums import ErrorKind, ImportIssueKind, ImportOutcome

# Core entities
from .entities import Donor

# Request models
from .requests import (
    CreateDonorRequest,
    UpdateDonorRequest,
    DonorListQuery,
    DonorPath,
    BloodGroupPath,
    ImportDonorsRequest
)

# Response models
from .responses import (
    HalLink,
    ImportIssue,
    ImportReport,
    BloodGroupStatistics,
    DonorStatistics
)

__all__ = [
    # Base models
    "BaseEntity",
    "BaseEntityCreate",
    "BaseEntityUpdate",

    # Enumerations
    "ErrorKind",
    "ImportIssueKind",
    "ImportOutcome",

    # Core entities
    "Donor",

    # Request models
    "CreateDonorRequest",
    "UpdateDonorRequest",
    "DonorListQuery",
    "DonorPath",
    "BloodGroupPath",
    "ImportDonorsRequest",

    # Response models
    "HalLink",
    "ImportIssue",
    "ImportReport",
    "BloodGroupStatistics",
    "DonorStatistics"
]
