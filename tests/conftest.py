# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from bson import ObjectId

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['MONGODB_DATABASE'] = 'donor_registry_test'

from donor_registry.app import create_app
from donor_registry.domain.donors import DonorService
from donor_registry.domain.ingestion import DonorCSVImporter
from donor_registry.services.mongodb import DonorStore

CSV_HEADER = "name,age,blood_group,contact_number,email,address,last_donation_date"

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    """Reference time used by the eligibility rules in tests."""
    return FIXED_NOW


@pytest.fixture
def sample_donor_data():
    """Sample donor payload for testing."""
    return {
        "name": "Maria Silva",
        "age": 34,
        "blood_group": "o+",
        "contact_number": "+55 11 99999-0000",
        "email": "Maria.Silva@Example.com",
        "address": "Rua das Flores 123, Sao Paulo",
        "last_donation_date": None
    }


@pytest.fixture
def stored_donor():
    """Donor record as the store returns it."""
    return {
        "id": str(ObjectId()),
        "name": "Maria Silva",
        "age": 34,
        "blood_group": "O+",
        "contact_number": "+55 11 99999-0000",
        "email": "maria.silva@example.com",
        "address": "Rua das Flores 123, Sao Paulo",
        "last_donation_date": datetime(2025, 1, 10),
        "latitude": None,
        "longitude": None,
        "created_at": datetime(2025, 5, 1, 8, 30),
        "updated_at": datetime(2025, 5, 1, 8, 30),
        "schema_version": 1
    }


@pytest.fixture
def mock_store():
    """Record store double."""
    return MagicMock(spec=DonorStore)


@pytest.fixture
def donor_service(mock_store, fixed_now):
    """Donor service over the store double with a frozen clock."""
    return DonorService(mock_store, clock=lambda: fixed_now)


@pytest.fixture
def importer(mock_store):
    """CSV importer over the store double."""
    return DonorCSVImporter(mock_store)


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a temporary file and return its path."""
    def _write(*rows, header=CSV_HEADER, name="donors.csv"):
        path = tmp_path / name
        path.write_text("\n".join((header,) + rows) + "\n", encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def mock_services():
    """Service doubles wired into the application."""
    return {
        "donor_service": MagicMock(spec=DonorService),
        "donor_importer": MagicMock(spec=DonorCSVImporter),
        "mongodb_service": MagicMock()
    }


@pytest.fixture
def app(mock_services):
    """Application wired with service doubles."""
    return create_app(
        config={
            "ENVIRONMENT": "test",
            "OTEL_ENABLED": False,
            "BASE_URL": "http://testserver"
        },
        **mock_services
    )


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
