# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field
from .enums import ImportIssueKind


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class ImportIssue(BaseModel):
    """A single row-level problem recorded during a CSV import."""

    kind: ImportIssueKind = Field(..., description="Outcome category of the row")
    line: Optional[int] = Field(None, description="CSV line number, header is line 1")
    email: Optional[str] = Field(None, description="Email of the row, for duplicates")
    data: Optional[Dict[str, Any]] = Field(None, description="Raw or transformed row data")
    error: str = Field(..., description="Human-readable reason")


class ImportReport(BaseModel):
    """Accounting of a completed CSV import."""

    total: int = Field(..., description="Number of candidate rows considered for persistence")
    successful: int = Field(..., description="Rows persisted")
    duplicates: int = Field(..., description="Rows rejected for an existing email")
    failed: int = Field(..., description="Rows rejected by the store for any other reason")
    errors: List[ImportIssue] = Field(default_factory=list, description="Parse errors, failed inserts, then duplicates")


class BloodGroupStatistics(BaseModel):
    """Aggregate figures for one blood group."""

    blood_group: str = Field(..., description="Blood group label")
    count: int = Field(..., description="Number of donors in the group")
    avg_age: Optional[float] = Field(None, description="Average donor age in the group")


class DonorStatistics(BaseModel):
    """Registry-wide donor statistics."""

    total: int = Field(..., description="Total number of donors")
    by_blood_group: List[BloodGroupStatistics] = Field(default_factory=list, description="Per blood group figures")

