# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB service layer with filter-scoped operations and connection pooling.
"""

import os
import logging
from datetime import datetime
from typing import List, Dict, Optional, Any
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError
)
from bson import ObjectId

from models.base import to_document_key

logger = logging.getLogger(__name__)


VEHICLES = "vehicles"
DRIVERS = "drivers"
DOCUMENTS = "documents"
FINES = "fines"
NOTIFICATIONS = "notifications"
USERS = "users"


class DuplicateRecordError(ValueError):
    """Raised when a unique index (plate, licence number, email) is violated."""


class PaginationResult:
    """Result container for paginated queries."""

    def __init__(self, items: List[Dict], total: int, page: int, page_size: int):
        self.items = items
        self.total = total
        self.page = page
        self.page_size = page_size
        self.total_pages = (total + page_size - 1) // page_size
        self.has_next = page < self.total_pages
        self.has_prev = page > 1

    def to_dict(self, items: List[Dict] = None) -> Dict[str, Any]:
        """Response envelope; items may be replaced by their serialized form."""
        return {
            "items": self.items if items is None else items,
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev
        }


def _with_string_id(document: Optional[Dict]) -> Optional[Dict]:
    """Replace the MongoDB "_id" key with a string "id"."""
    if document is not None and "_id" in document:
        document["id"] = str(document.pop("_id"))
    return document


class MongoDBService:
    """MongoDB service with filter-scoped operations and connection pooling."""

    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/viangola_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'viangola_dev')
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
            result = self.client.admin.command('ping')
            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'database': self.database_name
            }
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

    def _build_query(self, filters: Dict = None, doc_id: str = None) -> Dict:
        """Combine a scoping filter with an optional document ID."""
        query = dict(filters or {})
        if doc_id is not None:
            query["_id"] = to_document_key(doc_id)
        return query

    def _add_timestamps(self, document: Dict, user_id: str, is_update: bool = False) -> Dict:
        """Add creation and update timestamps to document."""
        now = datetime.utcnow()

        if not is_update:
            document["createdAt"] = now
            document["createdBy"] = user_id

        document["updatedAt"] = now
        document["updatedBy"] = user_id

        return document

    # CRUD Operations

    def create(self, collection: str, document: Dict, user_id: str) -> str:
        """Insert a document and return its ID."""
        try:
            document = self._add_timestamps(document, user_id)

            if "_id" not in document:
                document["_id"] = ObjectId()

            result = self.get_collection(collection).insert_one(document)

            logger.info(f"Created document in {collection}: {result.inserted_id}")
            return str(result.inserted_id)

        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key error in {collection}: {e}")
            raise DuplicateRecordError(f"A record with this identifier already exists in {collection}")

    def find(self, collection: str, filters: Dict = None, sort_by: str = "createdAt",
             sort_order: int = DESCENDING, limit: int = 0) -> List[Dict]:
        """Find documents matching a filter."""
        query = self._build_query(filters)
        cursor = self.get_collection(collection).find(query).sort(sort_by, sort_order)
        if limit:
            cursor = cursor.limit(limit)

        documents = [_with_string_id(doc) for doc in cursor]
        logger.debug(f"Found {len(documents)} documents in {collection}")
        return documents

    def find_one(self, collection: str, filters: Dict) -> Optional[Dict]:
        """Find the first document matching a filter."""
        return _with_string_id(self.get_collection(collection).find_one(self._build_query(filters)))

    def find_by_id(self, collection: str, doc_id: str, filters: Dict = None) -> Optional[Dict]:
        """Find a single document by ID, optionally restricted by a scoping filter."""
        document = self.get_collection(collection).find_one(self._build_query(filters, doc_id))

        if document is None:
            logger.debug(f"Document {doc_id} not found in {collection}")
        return _with_string_id(document)

    def distinct(self, collection: str, field: str, filters: Dict = None) -> List[Any]:
        """Distinct values of a field among matching documents."""
        return list(self.get_collection(collection).distinct(field, self._build_query(filters)))

    def update_by_id(self, collection: str, doc_id: str, updates: Dict,
                     user_id: str, filters: Dict = None) -> bool:
        """Update a document by ID. Returns False when nothing matched."""
        try:
            updates = self._add_timestamps(dict(updates), user_id, is_update=True)
            result = self.get_collection(collection).update_one(
                self._build_query(filters, doc_id),
                {"$set": updates}
            )
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key error updating {doc_id} in {collection}: {e}")
            raise DuplicateRecordError(f"A record with this identifier already exists in {collection}")

        if result.matched_count > 0:
            logger.info(f"Updated document {doc_id} in {collection}")
            return True

        logger.warning(f"No document updated for {doc_id} in {collection}")
        return False

    def update_many(self, collection: str, filters: Dict, updates: Dict) -> int:
        """Apply the same $set to every matching document."""
        updates = dict(updates)
        updates["updatedAt"] = datetime.utcnow()
        result = self.get_collection(collection).update_many(self._build_query(filters), {"$set": updates})
        logger.info(f"Updated {result.modified_count} documents in {collection}")
        return result.modified_count

    def delete_by_id(self, collection: str, doc_id: str, filters: Dict = None) -> bool:
        """Delete a document by ID. Returns False when nothing matched."""
        result = self.get_collection(collection).delete_one(self._build_query(filters, doc_id))

        if result.deleted_count > 0:
            logger.info(f"Deleted document {doc_id} in {collection}")
            return True

        logger.warning(f"No document deleted for {doc_id} in {collection}")
        return False

    def paginate(self, collection: str, filters: Dict = None, page: int = 1, page_size: int = 20,
                 sort_by: str = "createdAt", sort_order: int = DESCENDING) -> PaginationResult:
        """Paginate documents with sorting and filtering."""
        query = self._build_query(filters)
        collection_obj = self.get_collection(collection)

        skip = (page - 1) * page_size
        total = collection_obj.count_documents(query)

        cursor = collection_obj.find(query).sort(sort_by, sort_order).skip(skip).limit(page_size)
        documents = [_with_string_id(doc) for doc in cursor]

        logger.debug(f"Paginated {len(documents)} documents from {collection} (page {page})")
        return PaginationResult(documents, total, page, page_size)

    def count(self, collection: str, filters: Dict = None) -> int:
        """Count documents matching a filter."""
        return self.get_collection(collection).count_documents(self._build_query(filters))

    # Index Management

    def create_indexes(self) -> None:
        """Create unique and lookup indexes for all collections."""
        logger.info("Creating MongoDB indexes...")

        users = self.get_collection(USERS)
        users.create_index("email", unique=True)
        users.create_index("role")

        vehicles = self.get_collection(VEHICLES)
        vehicles.create_index("plate", unique=True)
        vehicles.create_index([("ownerId", ASCENDING), ("createdAt", DESCENDING)])

        drivers = self.get_collection(DRIVERS)
        drivers.create_index("licenseNumber", unique=True)
        drivers.create_index([("ownerId", ASCENDING), ("createdAt", DESCENDING)])

        documents = self.get_collection(DOCUMENTS)
        documents.create_index([("ownerId", ASCENDING), ("createdAt", DESCENDING)])
        documents.create_index("vehiclePlate")

        fines = self.get_collection(FINES)
        fines.create_index([("vehiclePlate", ASCENDING), ("status", ASCENDING)])
        fines.create_index([("driverLicense", ASCENDING), ("status", ASCENDING)])
        fines.create_index("rupeReference", unique=True, sparse=True)

        notifications = self.get_collection(NOTIFICATIONS)
        notifications.create_index([("userId", ASCENDING), ("read", ASCENDING), ("createdAt", DESCENDING)])

        logger.info("MongoDB indexes created successfully")


# Singleton instance for application use
_mongodb_service: Optional[MongoDBService] = None


def get_mongodb_service() -> MongoDBService:
    """Get singleton MongoDB service instance."""
    global _mongodb_service
    if _mongodb_service is None:
        _mongodb_service = MongoDBService()
    return _mongodb_service


def close_mongodb_connection() -> None:
    """Close MongoDB connection (for cleanup)."""
    global _mongodb_service
    if _mongodb_service:
        _mongodb_service.close_connection()
        _mongodb_service = None
