# SPDX-License-Identifier: Apache-2.0

"""
CSV ingestion pipeline for bulk donor registration.

Rows are streamed from disk one at a time. Each row is normalized, checked
for a name and an email, and, when it qualifies, handed to the record store
before the next row is read. Row-level problems end up in the returned
report; only a missing file, an unreadable stream or a file without a single
usable row abort the import.
"""

import csv
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ..models.enums import ImportIssueKind, ImportOutcome
from ..models.responses import ImportIssue, ImportReport
from ..services.mongodb import DonorStore, DuplicateKeySignal, StoreOperationError
from .errors import CSVReadError, FileNotFound, NoValidRecords

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields (name or email)"
DUPLICATE_EMAIL_MESSAGE = "Email already exists"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

_DATE_FORMATS = ("%Y/%m/%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S")


@dataclass
class CandidateRow:
    """A transformed row eligible for a persistence attempt."""
    line: int
    donor: Dict[str, Any]


def _text(row: Dict[str, Any], column: str) -> str:
    value = row.get(column)
    return value.strip() if isinstance(value, str) else ""


def parse_age(value: Optional[str]) -> int:
    """
    Read the leading integer of a value.

    ``"42"`` gives 42, ``"3.7"`` gives 3, anything without leading digits
    gives 0. The age never disqualifies a row.
    """
    if not value:
        return 0
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def parse_donation_date(value: Optional[str]) -> Union[datetime, str, None]:
    """
    Parse a last-donation date.

    Empty values mean "never donated". Text that matches no known format is
    returned unchanged so the store's schema check reports it for the row.
    """
    value = (value or "").strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return value


def parse_coordinate(value: Optional[str]) -> Union[float, str, None]:
    """Optional geocoordinate; unparseable text is left for the schema check."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return value


def transform_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Clean a raw CSV row into donor fields."""
    donor = {
        "name": _text(row, "name"),
        "age": parse_age(row.get("age")),
        "blood_group": _text(row, "blood_group").upper(),
        "contact_number": _text(row, "contact_number"),
        "email": _text(row, "email").lower(),
        "address": _text(row, "address"),
        "last_donation_date": parse_donation_date(row.get("last_donation_date"))
    }
    latitude = parse_coordinate(row.get("latitude"))
    longitude = parse_coordinate(row.get("longitude"))
    if latitude is not None:
        donor["latitude"] = latitude
    if longitude is not None:
        donor["longitude"] = longitude
    return donor


def missing_required_reason(donor: Dict[str, Any]) -> Optional[str]:
    """Reason a transformed row cannot become a candidate, if any."""
    if not donor.get("name") or not donor.get("email"):
        return MISSING_FIELDS_MESSAGE
    return None


class DonorCSVImporter:
    """Streams a donor CSV file into the record store."""

    def __init__(self, store: DonorStore, encoding: str = "utf-8-sig"):
        self.store = store
        self.encoding = encoding

    def iter_rows(self, file_path: Union[str, Path]) -> Iterator[Tuple[int, Dict[str, Any]]]:
        """
        Yield ``(line_number, raw_row)`` pairs from a CSV file.

        Line numbers are physical file lines, header included, so blank lines
        count. A record with a quoted line break reports the line it ends on.
        Header names are trimmed and lowercased; cells beyond the header are
        dropped.
        """
        path = Path(file_path)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise FileNotFound(str(file_path))

        try:
            with path.open("r", encoding=self.encoding, newline="") as handle:
                reader = csv.DictReader(handle)
                if reader.fieldnames:
                    reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
                for row in reader:
                    yield reader.line_num, {key: value for key, value in row.items() if key is not None}
        except UnicodeDecodeError as e:
            raise CSVReadError(f"file is not {self.encoding} encoded") from e
        except csv.Error as e:
            raise CSVReadError(str(e)) from e

    def persist(self, candidate: CandidateRow) -> Tuple[ImportOutcome, Optional[ImportIssue]]:
        """Create one donor and classify the store's answer."""
        try:
            self.store.create(candidate.donor)
        except DuplicateKeySignal as e:
            if e.field in (None, "email"):
                return ImportOutcome.DUPLICATE, ImportIssue(
                    kind=ImportIssueKind.DUPLICATE,
                    line=candidate.line,
                    email=candidate.donor.get("email"),
                    error=DUPLICATE_EMAIL_MESSAGE
                )
            return ImportOutcome.FAILED, self._failure(candidate, e.message)
        except StoreOperationError as e:
            return ImportOutcome.FAILED, self._failure(candidate, e.message)
        return ImportOutcome.SUCCESSFUL, None

    @staticmethod
    def _failure(candidate: CandidateRow, message: str) -> ImportIssue:
        data = {
            key: value.isoformat() if isinstance(value, datetime) else value
            for key, value in candidate.donor.items()
        }
        return ImportIssue(kind=ImportIssueKind.FAILED, line=candidate.line, data=data, error=message)

    def import_file(self, file_path: Union[str, Path]) -> ImportReport:
        """
        Import donors from a CSV file.

        Args:
            file_path: Path of the CSV file

        Returns:
            ImportReport with per-outcome counts and ordered row issues

        Raises:
            FileNotFound: the path is not a readable file
            CSVReadError: the stream could not be decoded or parsed
            NoValidRecords: no row had both a name and an email
        """
        with tracer.start_as_current_span("donor.import", attributes={"import.file": str(file_path)}) as span:
            parse_errors: List[ImportIssue] = []
            failures: List[ImportIssue] = []
            duplicates: List[ImportIssue] = []
            candidates = 0
            successful = 0

            try:
                for line_number, raw_row in self.iter_rows(file_path):
                    donor = transform_row(raw_row)
                    reason = missing_required_reason(donor)
                    if reason:
                        parse_errors.append(ImportIssue(
                            kind=ImportIssueKind.PARSE_ERROR,
                            line=line_number,
                            data=raw_row,
                            error=reason
                        ))
                        continue

                    candidates += 1
                    outcome, issue = self.persist(CandidateRow(line=line_number, donor=donor))
                    if outcome is ImportOutcome.SUCCESSFUL:
                        successful += 1
                    elif outcome is ImportOutcome.DUPLICATE:
                        duplicates.append(issue)
                    else:
                        failures.append(issue)
            except (FileNotFound, CSVReadError) as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                logger.error(f"CSV import aborted: {e.message}", extra={"file_path": str(file_path)})
                raise

            logger.info(f"CSV parsing completed. Found {candidates} donors.")

            if candidates == 0:
                span.set_status(Status(StatusCode.ERROR, "no valid records"))
                logger.warning(
                    "No valid donor records found in CSV",
                    extra={"file_path": str(file_path), "parse_errors": len(parse_errors)}
                )
                raise NoValidRecords([issue.model_dump(mode="json") for issue in parse_errors])

            report = ImportReport(
                total=candidates,
                successful=successful,
                duplicates=len(duplicates),
                failed=len(failures),
                errors=parse_errors + failures + duplicates
            )

            logger.info(f"Successfully imported {report.successful} donors")
            logger.info(f"{report.duplicates} duplicates skipped")
            logger.info(f"{report.failed} records failed validation")

            span.set_attributes({
                "import.total": report.total,
                "import.successful": report.successful,
                "import.duplicates": report.duplicates,
                "import.failed": report.failed,
                "import.parse_errors": len(parse_errors)
            })
            return report
