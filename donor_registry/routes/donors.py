# SPDX-License-Identifier: Apache-2.0

"""
Donor endpoints.

This module maps the donor registry operations onto HTTP: listing with
filters, single-donor CRUD, blood group lookup, statistics and CSV import.
Typed registry errors propagate to the error handler middleware, which turns
them into problem documents.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from ..domain.donors import DonorFilters
from ..models.requests import (
    CreateDonorRequest,
    UpdateDonorRequest,
    DonorListQuery,
    DonorPath,
    BloodGroupPath,
    ImportDonorsRequest
)

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

donors_tag = Tag(name="Donors", description="Donor registry management")
donors_bp = APIBlueprint(
    'donors',
    __name__,
    url_prefix='/api/donors',
    abp_tags=[donors_tag]
)


def serialize_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Make a stored donor JSON friendly, dates as ISO 8601 in UTC."""
    serialized = {}
    for key, value in record.items():
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            value = value.isoformat()
        serialized[key] = value
    return serialized


def _serialize_all(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [serialize_record(record) for record in records]


@donors_bp.get('')
def list_donors(query: DonorListQuery):
    """
    List donors.

    Newest donors first. ``blood_group`` filters by exact (case-insensitive)
    blood group, ``isEligible=true`` keeps donors who never donated or whose
    last donation is outside the eligibility window.
    """
    filters = DonorFilters(blood_group=query.blood_group, is_eligible=query.eligible_only())
    donors = current_app.donor_service.list_donors(filters)

    response = current_app.hal_formatter.format_donor_collection(
        _serialize_all(donors),
        filters={"blood_group": query.blood_group, "isEligible": query.is_eligible}
    )
    return jsonify(response), 200


@donors_bp.post('')
def create_donor(body: CreateDonorRequest):
    """Register a donor."""
    donor = current_app.donor_service.create_donor(body)
    return jsonify(current_app.hal_formatter.format_donor(serialize_record(donor))), 201


@donors_bp.get('/statistics')
def donor_statistics():
    """Donor counts and average age per blood group, plus the total."""
    statistics = current_app.donor_service.statistics()
    return jsonify(statistics.model_dump(mode="json")), 200


@donors_bp.get('/blood-group/<blood_group>')
def donors_by_blood_group(path: BloodGroupPath):
    """Donors of one blood group."""
    donors = current_app.donor_service.donors_by_blood_group(path.blood_group)
    response = current_app.hal_formatter.format_blood_group_collection(
        _serialize_all(donors),
        path.blood_group
    )
    return jsonify(response), 200


@donors_bp.post('/import')
def import_donors(body: ImportDonorsRequest):
    """
    Import donors from a CSV file on the server.

    Row-level problems are reported in the response body; only a missing
    file, an unreadable file or a file without valid rows fail the request.
    """
    with tracer.start_as_current_span("donor.import.request", attributes={"import.file": body.file_path}) as span:
        report = current_app.donor_importer.import_file(body.file_path)

        logger.info(
            "Donor CSV import completed",
            extra={
                "file_path": body.file_path,
                "total": report.total,
                "successful": report.successful,
                "duplicates": report.duplicates,
                "failed": report.failed
            }
        )
        span.set_status(Status(StatusCode.OK))
        return jsonify(report.model_dump(mode="json")), 200


@donors_bp.get('/<donor_id>')
def get_donor(path: DonorPath):
    """Fetch a donor by identifier."""
    donor = current_app.donor_service.get_donor(path.donor_id)
    return jsonify(current_app.hal_formatter.format_donor(serialize_record(donor))), 200


@donors_bp.put('/<donor_id>')
def update_donor(path: DonorPath, body: UpdateDonorRequest):
    """Update some or all fields of a donor."""
    donor = current_app.donor_service.update_donor(path.donor_id, body.changes())
    return jsonify(current_app.hal_formatter.format_donor(serialize_record(donor))), 200


@donors_bp.delete('/<donor_id>')
def delete_donor(path: DonorPath):
    """Delete a donor permanently."""
    donor = current_app.donor_service.delete_donor(path.donor_id)
    return jsonify({
        "message": "Donor deleted successfully",
        "donor": serialize_record(donor)
    }), 200
