# SPDX-License-Identifier: Apache-2.0

"""
Donor query service.

Builds MongoDB filters for listing and eligibility, runs the statistics
aggregation, and translates store signals into registry errors for the
single-record operations.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union
import logging

from opentelemetry import trace
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING

from ..models.base import utc_now
from ..models.responses import BloodGroupStatistics, DonorStatistics
from ..services.mongodb import (
    DonorStore,
    DuplicateKeySignal,
    MalformedIdError,
    RecordValidationError,
    StoreOperationError
)
from .errors import (
    DonorValidationError,
    DuplicateEmail,
    InvalidIdentifier,
    NotFound,
    StoreError
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ELIGIBILITY_WINDOW_DAYS = 90

NEWEST_FIRST = [("created_at", DESCENDING)]


@dataclass
class DonorFilters:
    """Filters for donor listing."""
    blood_group: Optional[str] = None
    is_eligible: Optional[bool] = None


def eligibility_cutoff(now: datetime, window_days: int = ELIGIBILITY_WINDOW_DAYS) -> datetime:
    """Latest last-donation date that still counts as eligible."""
    return now - timedelta(days=window_days)


def build_donor_query(
    filters: Optional[DonorFilters],
    now: datetime,
    window_days: int = ELIGIBILITY_WINDOW_DAYS
) -> Dict[str, Any]:
    """
    Build the MongoDB filter for a donor listing.

    Args:
        filters: Requested filters, may be None
        now: Reference time for the eligibility window
        window_days: Minimum days since the last donation

    Returns:
        MongoDB query document
    """
    query: Dict[str, Any] = {}
    if filters is None:
        return query

    if filters.blood_group:
        query["blood_group"] = filters.blood_group.strip().upper()

    if filters.is_eligible:
        # A null match also covers documents without the field
        query["$or"] = [
            {"last_donation_date": None},
            {"last_donation_date": {"$lte": eligibility_cutoff(now, window_days)}}
        ]

    return query


def build_statistics_pipeline() -> List[Dict[str, Any]]:
    """Aggregation grouping donors by blood group with count and mean age."""
    return [
        {
            "$group": {
                "_id": "$blood_group",
                "count": {"$sum": 1},
                "avgAge": {"$avg": "$age"}
            }
        },
        {"$sort": {"_id": ASCENDING}}
    ]


@contextmanager
def translate_store_errors(donor_id: Any = None) -> Iterator[None]:
    """Re-raise store adapter signals as registry errors."""
    try:
        yield
    except MalformedIdError as e:
        raise InvalidIdentifier(donor_id if donor_id is not None else e.doc_id) from e
    except DuplicateKeySignal as e:
        if e.field in (None, "email"):
            raise DuplicateEmail(e.value) from e
        raise StoreError(e.message) from e
    except RecordValidationError as e:
        raise DonorValidationError(e.message, e.errors) from e
    except StoreOperationError as e:
        raise StoreError(e.message) from e


class DonorService:
    """Donor CRUD, filtered queries and statistics over a record store."""

    def __init__(
        self,
        store: DonorStore,
        eligibility_days: int = ELIGIBILITY_WINDOW_DAYS,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.eligibility_days = eligibility_days
        self.clock = clock

    def list_donors(self, filters: Optional[DonorFilters] = None) -> List[Dict[str, Any]]:
        """List donors newest first, optionally by blood group and eligibility."""
        with tracer.start_as_current_span("donor.list") as span:
            query = build_donor_query(filters, self.clock(), self.eligibility_days)
            span.set_attributes({
                "filters.blood_group": query.get("blood_group", ""),
                "filters.is_eligible": bool(filters and filters.is_eligible)
            })
            with translate_store_errors():
                donors = self.store.find(query, sort=NEWEST_FIRST)
            span.set_attribute("donor.count", len(donors))
            return donors

    def get_donor(self, donor_id: str) -> Dict[str, Any]:
        """Fetch one donor or raise NotFound / InvalidIdentifier."""
        with tracer.start_as_current_span("donor.get", attributes={"donor.id": str(donor_id)}):
            with translate_store_errors(donor_id):
                donor = self.store.find_by_id(donor_id)
            if donor is None:
                raise NotFound(donor_id)
            return donor

    def create_donor(self, data: Union[Mapping[str, Any], BaseModel]) -> Dict[str, Any]:
        """Register a donor; a taken email raises DuplicateEmail."""
        payload = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        with tracer.start_as_current_span("donor.create"):
            with translate_store_errors():
                donor = self.store.create(payload)
            logger.info(
                "Donor created",
                extra={"donor_id": donor.get("id"), "blood_group": donor.get("blood_group")}
            )
            return donor

    def update_donor(self, donor_id: str, patch: Union[Mapping[str, Any], BaseModel]) -> Dict[str, Any]:
        """Apply a partial update and return the post-update donor."""
        if isinstance(patch, BaseModel):
            patch = patch.model_dump(exclude_unset=True)
        with tracer.start_as_current_span("donor.update", attributes={"donor.id": str(donor_id)}):
            with translate_store_errors(donor_id):
                donor = self.store.find_by_id_and_update(donor_id, dict(patch))
            if donor is None:
                raise NotFound(donor_id)
            logger.info("Donor updated", extra={"donor_id": donor_id, "fields": sorted(patch)})
            return donor

    def delete_donor(self, donor_id: str) -> Dict[str, Any]:
        """Remove a donor permanently and return the removed record."""
        with tracer.start_as_current_span("donor.delete", attributes={"donor.id": str(donor_id)}):
            with translate_store_errors(donor_id):
                donor = self.store.find_by_id_and_delete(donor_id)
            if donor is None:
                raise NotFound(donor_id)
            logger.info("Donor deleted", extra={"donor_id": donor_id})
            return donor

    def donors_by_blood_group(self, blood_group: str) -> List[Dict[str, Any]]:
        """Exact blood group match; the label is compared uppercase."""
        label = (blood_group or "").strip().upper()
        with tracer.start_as_current_span("donor.by_blood_group", attributes={"donor.blood_group": label}):
            with translate_store_errors():
                return self.store.find({"blood_group": label}, sort=NEWEST_FIRST)

    def statistics(self) -> DonorStatistics:
        """Per blood group counts and mean ages, plus the grand total."""
        with tracer.start_as_current_span("donor.statistics") as span:
            with translate_store_errors():
                groups = self.store.aggregate(build_statistics_pipeline())
                total = self.store.count_all()
            span.set_attributes({"donor.total": total, "donor.groups": len(groups)})
            return DonorStatistics(
                total=total,
                by_blood_group=[
                    BloodGroupStatistics(
                        blood_group=group.get("_id") or "",
                        count=group.get("count", 0),
                        avg_age=group.get("avgAge")
                    )
                    for group in groups
                ]
            )
