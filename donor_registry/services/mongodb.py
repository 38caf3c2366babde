# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB service layer with connection pooling and the donor record store.
"""

import os
import re
import logging
from typing import List, Dict, Optional, Any, Mapping, Sequence, Tuple, Union
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError,
    PyMongoError
)
from bson import ObjectId
from bson.errors import InvalidId, InvalidDocument
from pydantic import ValidationError

from ..models.base import utc_now
from ..models.entities import Donor, UNIQUE_FIELDS
from ..models.requests import UpdateDonorRequest

logger = logging.getLogger(__name__)

_INDEX_NAME_PATTERN = re.compile(r"index: (\w+?)_(?:-?1|unique)\b")


class StoreOperationError(Exception):
    """Raised when the underlying store rejects or fails an operation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateKeySignal(StoreOperationError):
    """Raised when a write violates a unique index."""

    def __init__(self, field: Optional[str], value: Any = None):
        super().__init__(f"Duplicate value for unique field: {field or 'unknown'}")
        self.field = field
        self.value = value


class MalformedIdError(StoreOperationError):
    """Raised when an identifier cannot be cast to an ObjectId."""

    def __init__(self, doc_id: Any):
        super().__init__(f"Invalid ObjectId format: {doc_id}")
        self.doc_id = doc_id


class RecordValidationError(StoreOperationError):
    """Raised when a record does not satisfy the donor schema."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, error: ValidationError) -> "RecordValidationError":
        details = [
            {
                "field": ".".join(str(part) for part in item.get("loc", ())),
                "message": item.get("msg", ""),
                "type": item.get("type", "")
            }
            for item in error.errors()
        ]
        summary = "; ".join(f"{d['field']}: {d['message']}" for d in details)
        return cls(f"Donor validation failed: {summary}", details)


class MongoDBService:
    """MongoDB connection holder with connection pooling."""

    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/donor_registry_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'donor_registry_dev')
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"MongoDB service initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self._client = None
                raise

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            # Ping the database
            result = self.client.admin.command('ping')

            # Get server info
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except PyMongoError as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }


def validate_object_id(doc_id: Any) -> ObjectId:
    """Validate and convert string ID to ObjectId."""
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        raise MalformedIdError(doc_id)


def _duplicate_field(error: DuplicateKeyError) -> Tuple[Optional[str], Any]:
    """Work out which unique field a duplicate key error refers to."""
    details = error.details or {}
    key_pattern = details.get('keyPattern') or {}
    key_value = details.get('keyValue') or {}
    if key_pattern:
        field = next(iter(key_pattern))
        return field, key_value.get(field)
    match = _INDEX_NAME_PATTERN.search(str(error))
    if match:
        return match.group(1), None
    return None, None


class DonorStore:
    """
    Record store adapter for donor documents.

    Records leave the store as plain dictionaries with a string ``id`` in
    place of the MongoDB ``_id``. Driver errors are translated into the
    ``StoreOperationError`` family so callers never handle pymongo types.
    """

    def __init__(self, mongodb_service: MongoDBService, collection_name: str = "donors"):
        self.mongodb_service = mongodb_service
        self.collection_name = collection_name

    @property
    def collection(self) -> Collection:
        return self.mongodb_service.get_collection(self.collection_name)

    @staticmethod
    def _to_record(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Convert ObjectId to string for JSON serialization."""
        if document is None:
            return None
        record = dict(document)
        if "_id" in record:
            record["id"] = str(record.pop("_id"))
        return record

    def create(self, record: Union[Mapping[str, Any], Donor]) -> Dict[str, Any]:
        """Validate and insert a new donor."""
        try:
            donor = record if isinstance(record, Donor) else Donor.model_validate(dict(record))
        except ValidationError as e:
            raise RecordValidationError.from_pydantic(e) from e

        document = donor.to_document()
        document["_id"] = ObjectId(donor.id)

        try:
            result = self.collection.insert_one(document)
        except DuplicateKeyError as e:
            field, value = _duplicate_field(e)
            logger.warning(f"Duplicate key in {self.collection_name}: {field}")
            raise DuplicateKeySignal(field, value if value is not None else document.get(field)) from e
        except PyMongoError as e:
            logger.error(f"Failed to create document in {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e
        except (OverflowError, InvalidDocument) as e:
            logger.error(f"Document not encodable for {self.collection_name}: {e}")
            raise StoreOperationError(f"Document cannot be stored: {e}") from e

        logger.debug(f"Created document in {self.collection_name}: {result.inserted_id}")
        return self._to_record(document)

    def find(self, query: Optional[Dict[str, Any]] = None,
             sort: Optional[Sequence[Tuple[str, int]]] = None) -> List[Dict[str, Any]]:
        """Find donors matching a MongoDB filter."""
        try:
            cursor = self.collection.find(query or {})
            if sort:
                cursor = cursor.sort(list(sort))
            documents = [self._to_record(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error(f"Failed to find documents in {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e

        logger.debug(f"Found {len(documents)} documents in {self.collection_name}")
        return documents

    def find_by_id(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Find a single donor by identifier."""
        object_id = validate_object_id(doc_id)
        try:
            document = self.collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Failed to find document {doc_id} in {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e

        if document is None:
            logger.debug(f"Document {doc_id} not found in {self.collection_name}")
        return self._to_record(document)

    def find_by_id_and_update(self, doc_id: str,
                              patch: Union[Mapping[str, Any], UpdateDonorRequest]) -> Optional[Dict[str, Any]]:
        """Apply a validated partial update and return the updated donor."""
        object_id = validate_object_id(doc_id)
        try:
            update = patch if isinstance(patch, UpdateDonorRequest) else UpdateDonorRequest.model_validate(dict(patch))
        except ValidationError as e:
            raise RecordValidationError.from_pydantic(e) from e

        changes = update.changes()
        if not changes:
            return self.find_by_id(doc_id)
        changes["updated_at"] = utc_now()

        try:
            document = self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError as e:
            field, value = _duplicate_field(e)
            logger.warning(f"Duplicate key updating {doc_id} in {self.collection_name}: {field}")
            raise DuplicateKeySignal(field, value if value is not None else changes.get(field)) from e
        except PyMongoError as e:
            logger.error(f"Failed to update document {doc_id} in {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e
        except (OverflowError, InvalidDocument) as e:
            logger.error(f"Update for {doc_id} not encodable for {self.collection_name}: {e}")
            raise StoreOperationError(f"Document cannot be stored: {e}") from e

        if document is None:
            logger.warning(f"No document updated for {doc_id} in {self.collection_name}")
        else:
            logger.info(f"Updated document {doc_id} in {self.collection_name}")
        return self._to_record(document)

    def find_by_id_and_delete(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Delete a donor and return the removed document."""
        object_id = validate_object_id(doc_id)
        try:
            document = self.collection.find_one_and_delete({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete document {doc_id} in {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e

        if document is None:
            logger.warning(f"No document deleted for {doc_id} in {self.collection_name}")
        else:
            logger.info(f"Deleted document {doc_id} in {self.collection_name}")
        return self._to_record(document)

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Run an aggregation pipeline over the donor collection."""
        try:
            results = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.error(f"Failed to run aggregation in {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e

        logger.debug(f"Aggregation returned {len(results)} results from {self.collection_name}")
        return results

    def count_all(self) -> int:
        """Count every donor in the collection."""
        try:
            return self.collection.count_documents({})
        except PyMongoError as e:
            logger.error(f"Failed to count documents in {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e

    def ensure_indexes(self) -> None:
        """Create the unique and query indexes for donors."""
        logger.info(f"Creating indexes for {self.collection_name}...")
        try:
            for field in UNIQUE_FIELDS:
                self.collection.create_index([(field, ASCENDING)], unique=True, name=f"{field}_unique")
            self.collection.create_index([("created_at", DESCENDING)])
            self.collection.create_index([("blood_group", ASCENDING)])
            self.collection.create_index([("last_donation_date", ASCENDING)])
        except PyMongoError as e:
            logger.error(f"Failed to create indexes for {self.collection_name}: {e}")
            raise StoreOperationError(str(e)) from e
        logger.info(f"Indexes for {self.collection_name} created successfully")
