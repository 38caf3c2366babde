# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Integration tests against a real MongoDB.

Set MONGODB_TEST_URI to point at a disposable server; the module is skipped
when no server answers.
"""

import os
import uuid
import pytest
from datetime import timedelta
from bson import ObjectId
from pymongo.errors import PyMongoError

from donor_registry.domain.donors import DonorFilters, DonorService
from donor_registry.domain.errors import DuplicateEmail, InvalidIdentifier, NotFound
from donor_registry.domain.ingestion import DonorCSVImporter
from donor_registry.services.mongodb import MongoDBService, DonorStore

pytestmark = pytest.mark.integration

TEST_DATABASE = 'donor_registry_test'


def donor(name, email, blood_group="O+", age=30, last_donation_date=None):
    return {
        "name": name,
        "age": age,
        "blood_group": blood_group,
        "contact_number": "555-0100",
        "email": email,
        "address": "Rua Principal 1",
        "last_donation_date": last_donation_date
    }


@pytest.fixture(scope="module")
def mongodb_service():
    """MongoDB service for the test database, skipped when unreachable."""
    service = MongoDBService(
        os.getenv('MONGODB_TEST_URI', 'mongodb://localhost:27017/donor_registry_test'),
        TEST_DATABASE
    )
    service.server_selection_timeout_ms = 1000
    try:
        service.client
    except PyMongoError as e:
        pytest.skip(f"MongoDB not reachable: {e}")
    yield service
    service.client.drop_database(TEST_DATABASE)
    service.close_connection()


@pytest.fixture
def store(mongodb_service):
    """Donor store on a fresh collection with indexes in place."""
    store = DonorStore(mongodb_service, f"donors_{uuid.uuid4().hex[:8]}")
    store.ensure_indexes()
    yield store
    store.collection.drop()


@pytest.fixture
def service(store, fixed_now):
    return DonorService(store, clock=lambda: fixed_now)


class TestDonorLifecycle:
    """CRUD against a real collection."""

    def test_create_update_delete(self, service):
        created = service.create_donor(donor("Ana", "Ana@Example.com"))

        assert created["email"] == "ana@example.com"
        assert service.get_donor(created["id"])["name"] == "Ana"

        updated = service.update_donor(created["id"], {"blood_group": "ab-"})
        assert updated["blood_group"] == "AB-"
        assert updated["email"] == "ana@example.com"

        service.delete_donor(created["id"])
        with pytest.raises(NotFound):
            service.get_donor(created["id"])

    def test_email_is_unique_case_insensitively(self, service):
        service.create_donor(donor("Ana", "ana@example.com"))

        with pytest.raises(DuplicateEmail):
            service.create_donor(donor("Ana Clone", "ANA@EXAMPLE.COM"))

        assert service.store.count_all() == 1

    def test_identifier_errors(self, service):
        with pytest.raises(InvalidIdentifier):
            service.get_donor("not-an-id")

        with pytest.raises(NotFound):
            service.get_donor(str(ObjectId()))


class TestQueries:
    """Filtering and statistics against a real collection."""

    def test_eligibility_filter(self, service, fixed_now):
        service.create_donor(donor("Never", "never@example.com"))
        service.create_donor(donor("Recent", "recent@example.com", last_donation_date=fixed_now - timedelta(days=10)))
        service.create_donor(donor("Old", "old@example.com", last_donation_date=fixed_now - timedelta(days=120)))

        eligible = service.list_donors(DonorFilters(is_eligible=True))

        assert sorted(d["name"] for d in eligible) == ["Never", "Old"]
        assert len(service.list_donors(DonorFilters(is_eligible=False))) == 3

    def test_blood_group_filter_is_case_insensitive(self, service):
        service.create_donor(donor("Ana", "ana@example.com", blood_group="A+"))
        service.create_donor(donor("Bia", "bia@example.com", blood_group="B+"))

        assert [d["name"] for d in service.list_donors(DonorFilters(blood_group="a+"))] == ["Ana"]
        assert [d["name"] for d in service.donors_by_blood_group("b+")] == ["Bia"]

    def test_statistics(self, service):
        service.create_donor(donor("Ana", "ana@example.com", blood_group="A+", age=30))
        service.create_donor(donor("Bia", "bia@example.com", blood_group="A+", age=40))
        service.create_donor(donor("Caio", "caio@example.com", blood_group="B-", age=50))

        statistics = service.statistics()

        assert statistics.total == 3
        assert [(g.blood_group, g.count, g.avg_age) for g in statistics.by_blood_group] == [
            ("A+", 2, 35.0),
            ("B-", 1, 50.0)
        ]


class TestCSVImport:
    """Bulk import against a real collection."""

    def test_existing_email_is_reported_as_duplicate(self, service, store, write_csv):
        service.create_donor(donor("Ana", "ana@example.com"))
        path = write_csv("Ana Again,31,O+,555,ANA@example.com,Rua A,")

        report = DonorCSVImporter(store).import_file(path)

        assert report.total == 1
        assert report.successful == 0
        assert report.duplicates == 1
        assert store.count_all() == 1

    def test_mixed_file(self, store, write_csv):
        path = write_csv(
            "Ana,29,a+,555,ana@example.com,Rua A,2024-11-02",
            "Sem Email,40,O-,555,,Rua B,",
            "Bia,abc,B+,555,bia@example.com,Rua C,",
            "Bia Twin,33,B+,555,bia@example.com,Rua D,"
        )

        report = DonorCSVImporter(store).import_file(path)

        assert report.total == 3
        assert report.successful == 2
        assert report.duplicates == 1
        assert [issue.kind.value for issue in report.errors] == ["parse_error", "duplicate"]
        bia = store.find({"email": "bia@example.com"})[0]
        assert bia["age"] == 0
