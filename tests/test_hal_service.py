# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for HAL response formatting utilities.
"""

from donor_registry.services.hal import (
    HalLinkBuilder,
    HalResponseBuilder,
    create_hal_formatter
)
from donor_registry.models.responses import HalLink


class TestHalLinkBuilder:
    """Test HAL link builder functionality."""

    def test_build_basic_link(self):
        """Test building a basic HAL link."""
        builder = HalLinkBuilder("https://api.example.com")

        link = builder.build_link("/api/donors/123")

        assert isinstance(link, HalLink)
        assert link.href == "https://api.example.com/api/donors/123"
        assert link.method == "GET"
        assert link.type is None

    def test_base_url_with_trailing_slash(self):
        builder = HalLinkBuilder("https://api.example.com/")

        assert builder.build_self_link("/api/donors").href == "https://api.example.com/api/donors"


class TestHalResponseBuilder:
    """Test HAL response builder functionality."""

    def test_donor_resource_links(self):
        builder = HalResponseBuilder("https://api.example.com")

        response = builder.build_resource_response({"id": "abc", "name": "Ana"})

        links = response["_links"]
        assert response["name"] == "Ana"
        assert links["self"]["href"] == "https://api.example.com/api/donors/abc"
        assert links["collection"]["href"] == "https://api.example.com/api/donors"
        assert links["edit"] == {
            "href": "https://api.example.com/api/donors/abc",
            "method": "PUT",
            "type": "application/json",
            "title": "Edit donor"
        }
        assert links["delete"]["method"] == "DELETE"

    def test_collection_self_link_keeps_filters(self):
        builder = HalResponseBuilder("https://api.example.com")

        response = builder.build_collection_response(
            [{"id": "1"}, {"id": "2"}],
            "/api/donors",
            {"blood_group": "A+", "isEligible": None}
        )

        assert response["total"] == 2
        assert response["_links"]["self"]["href"] == "https://api.example.com/api/donors?blood_group=A%2B"
        assert [donor["id"] for donor in response["_embedded"]["donors"]] == ["1", "2"]

    def test_error_response_is_problem_document(self):
        builder = HalResponseBuilder("https://api.example.com")

        response = builder.build_error_response(
            "validation-error",
            "Validation Error",
            422,
            "Donor validation failed",
            "/api/donors",
            kind="validation_error",
            validation_errors=[{"field": "email", "message": "Email cannot be empty"}]
        )

        assert response["type"] == "https://api.donor-registry.org/problems/validation-error"
        assert response["status"] == 422
        assert response["kind"] == "validation_error"
        assert response["errors"][0]["field"] == "email"
        assert "help" in response["_links"]
        assert "schema" in response["_links"]


class TestHalFormatter:
    """Test high-level formatter helpers."""

    def test_blood_group_collection_path_is_quoted(self):
        formatter = create_hal_formatter("https://api.example.com")

        response = formatter.format_blood_group_collection([], "AB+")

        assert response["total"] == 0
        assert response["_links"]["self"]["href"] == "https://api.example.com/api/donors/blood-group/AB%2B"

    def test_not_found_error_links_collection(self):
        formatter = create_hal_formatter("https://api.example.com")

        response = formatter.format_not_found_error("Donor not found", "/api/donors/1", "not_found")

        assert response["status"] == 404
        assert response["_links"]["collection"]["href"] == "https://api.example.com/api/donors"

    def test_conflict_error(self):
        formatter = create_hal_formatter("https://api.example.com")

        response = formatter.format_conflict_error("Email already exists", "/api/donors", "duplicate_email")

        assert response["status"] == 409
        assert response["title"] == "Resource Conflict"
        assert "errors" not in response
