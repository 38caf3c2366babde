# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the donor registry.
"""

from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator
from .base import BaseEntity


# Fields backed by a unique index in the store
UNIQUE_FIELDS = ("email",)

REQUIRED_FIELDS = ("name", "age", "blood_group", "contact_number", "email", "address")


def normalize_required_text(value: str, field_name: str) -> str:
    """Trim a required text field and reject it when nothing is left."""
    value = value.strip()
    if not value:
        raise ValueError(f"{field_name} cannot be empty")
    return value


def normalize_blood_group(value: str) -> str:
    """Blood groups are stored uppercase."""
    return normalize_required_text(value, "Blood group").upper()


def normalize_email(value: str) -> str:
    """Emails are stored trimmed and lowercase."""
    return normalize_required_text(value, "Email").lower()


class Donor(BaseEntity):
    """Registered blood donor."""

    name: str = Field(..., description="Donor full name")
    age: int = Field(..., description="Donor age in years")
    blood_group: str = Field(..., description="Blood group label, e.g. A+ or O-")
    contact_number: str = Field(..., description="Contact phone number")
    email: str = Field(..., description="Contact email, unique across donors")
    address: str = Field(..., description="Postal address")
    last_donation_date: Optional[datetime] = Field(None, description="Last donation, null if never donated")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Latitude of the donor address")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Longitude of the donor address")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return normalize_required_text(v, "Donor name")

    @field_validator('contact_number')
    @classmethod
    def validate_contact_number(cls, v):
        return normalize_required_text(v, "Contact number")

    @field_validator('address')
    @classmethod
    def validate_address(cls, v):
        return normalize_required_text(v, "Address")

    @field_validator('blood_group')
    @classmethod
    def validate_blood_group(cls, v):
        """Normalize blood group to uppercase."""
        return normalize_blood_group(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Normalize email to lowercase."""
        return normalize_email(v)

    def has_donated(self) -> bool:
        """Check whether the donor has any recorded donation."""
        return self.last_donation_date is not None

    def to_document(self) -> dict:
        """Shape the donor for storage, without the string identifier."""
        return self.model_dump(exclude={"id"})
