# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for application wiring and the import command.
"""

import json
import pytest
from unittest.mock import MagicMock, patch
from pymongo.errors import PyMongoError

from donor_registry.app import create_app
from donor_registry.domain.donors import DonorService
from donor_registry.scripts import import_donors

TEST_CONFIG = {
    "ENVIRONMENT": "test",
    "OTEL_ENABLED": False,
    "BASE_URL": "http://testserver"
}


class TestCreateApp:
    """Test service wiring in the application factory."""

    def test_builds_store_and_creates_indexes(self):
        mongodb_service = MagicMock()
        collection = mongodb_service.get_collection.return_value

        app = create_app(config=TEST_CONFIG, mongodb_service=mongodb_service)

        assert isinstance(app.donor_service, DonorService)
        mongodb_service.get_collection.assert_any_call("donors")
        collection.create_index.assert_any_call([("email", 1)], unique=True, name="email_unique")

    def test_index_failure_does_not_stop_startup(self):
        mongodb_service = MagicMock()
        mongodb_service.get_collection.return_value.create_index.side_effect = PyMongoError("not primary")

        app = create_app(config=TEST_CONFIG, mongodb_service=mongodb_service)

        assert isinstance(app.donor_service, DonorService)
        assert app.donor_importer.store is app.donor_service.store

    def test_injected_service_skips_index_creation(self, mock_services):
        create_app(config=TEST_CONFIG, **mock_services)

        mock_services["mongodb_service"].get_collection.return_value.create_index.assert_not_called()


class TestImportCommand:
    """Test the CSV import command line entry point."""

    @patch('donor_registry.scripts.import_donors.MongoDBService')
    def test_creates_indexes_before_importing(self, mock_service_class, write_csv, capsys):
        collection = mock_service_class.return_value.get_collection.return_value
        calls = []
        collection.create_index.side_effect = lambda *args, **kwargs: calls.append("create_index")

        def insert_one(document):
            calls.append("insert_one")
            return MagicMock(inserted_id=document["_id"])

        collection.insert_one.side_effect = insert_one

        import_donors.main([write_csv("Ana,29,A+,555,ana@example.com,Rua A,"), "--collection", "donors_import"])

        collection.create_index.assert_any_call([("email", 1)], unique=True, name="email_unique")
        assert calls.index("insert_one") > max(i for i, name in enumerate(calls) if name == "create_index")
        report = json.loads(capsys.readouterr().out)
        assert report["successful"] == 1
        mock_service_class.return_value.get_collection.assert_any_call("donors_import")
        mock_service_class.return_value.close_connection.assert_called_once()

    @patch('donor_registry.scripts.import_donors.MongoDBService')
    def test_index_failure_aborts_import(self, mock_service_class, write_csv):
        collection = mock_service_class.return_value.get_collection.return_value
        collection.create_index.side_effect = PyMongoError("not authorized")

        with pytest.raises(SystemExit) as exc_info:
            import_donors.main([write_csv("Ana,29,A+,555,ana@example.com,Rua A,")])

        assert exc_info.value.code == 1
        collection.insert_one.assert_not_called()
        mock_service_class.return_value.close_connection.assert_called_once()
