# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from .base import BaseEntityCreate, BaseEntityUpdate
from .entities import REQUIRED_FIELDS, normalize_required_text, normalize_blood_group, normalize_email


class CreateDonorRequest(BaseEntityCreate):
    """Request model for registering a donor."""

    name: str = Field(..., min_length=1, max_length=200, description="Donor full name")
    age: int = Field(..., description="Donor age in years")
    blood_group: str = Field(..., min_length=1, max_length=10, description="Blood group label")
    contact_number: str = Field(..., min_length=1, max_length=50, description="Contact phone number")
    email: str = Field(..., min_length=1, max_length=320, description="Contact email")
    address: str = Field(..., min_length=1, max_length=500, description="Postal address")
    last_donation_date: Optional[datetime] = Field(None, description="Last donation date")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Latitude")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Longitude")

    @field_validator('blood_group')
    @classmethod
    def validate_blood_group(cls, v):
        return normalize_blood_group(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)


class UpdateDonorRequest(BaseEntityUpdate):
    """
    Request model for a partial donor update.

    Only the fields present in the payload are applied. Required donor fields
    may be changed but not cleared.
    """

    name: Optional[str] = Field(None, max_length=200, description="Donor full name")
    age: Optional[int] = Field(None, description="Donor age in years")
    blood_group: Optional[str] = Field(None, max_length=10, description="Blood group label")
    contact_number: Optional[str] = Field(None, max_length=50, description="Contact phone number")
    email: Optional[str] = Field(None, max_length=320, description="Contact email")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    last_donation_date: Optional[datetime] = Field(None, description="Last donation date")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Latitude")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Longitude")

    @field_validator('name', 'contact_number', 'address')
    @classmethod
    def validate_text(cls, v, info):
        if v is None:
            return v
        return normalize_required_text(v, info.field_name.replace('_', ' ').capitalize())

    @field_validator('blood_group')
    @classmethod
    def validate_blood_group(cls, v):
        if v is None:
            return v
        return normalize_blood_group(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v is None:
            return v
        return normalize_email(v)

    @model_validator(mode='after')
    def reject_cleared_required_fields(self):
        """Required donor fields cannot be set to null."""
        cleared = [
            name for name in REQUIRED_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Required fields cannot be null: {', '.join(cleared)}")
        return self

    def changes(self) -> dict:
        """Fields explicitly provided in the payload."""
        return self.model_dump(exclude_unset=True)


class DonorListQuery(BaseModel):
    """Query string filters for the donor listing."""

    model_config = ConfigDict(populate_by_name=True)

    blood_group: Optional[str] = Field(None, description="Exact blood group match, case-insensitive")
    is_eligible: Optional[str] = Field(
        None,
        alias="isEligible",
        description="'true' keeps only donors whose last donation is outside the eligibility window"
    )

    def eligible_only(self) -> Optional[bool]:
        """Only the literal ``true`` (any case) enables the filter; other values disable it."""
        if self.is_eligible is None:
            return None
        return self.is_eligible.strip().lower() == "true"


class DonorPath(BaseModel):
    """Path parameters addressing a single donor."""

    donor_id: str = Field(..., description="Donor identifier")


class BloodGroupPath(BaseModel):
    """Path parameters addressing a blood group."""

    blood_group: str = Field(..., description="Blood group label")


class ImportDonorsRequest(BaseModel):
    """Request model for a server-side CSV import."""

    file_path: str = Field(..., min_length=1, description="Path of the CSV file on the server")
