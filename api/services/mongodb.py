# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB persistence collaborator with connection pooling.

The record store writes committed records through this service and loads
them back on startup. Documents keep the camelCase wire field names; the
record id is stored as the ObjectId ``_id``.
"""

import os
import logging
from typing import List, Dict, Optional, Any
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from bson import ObjectId
from bson.errors import InvalidId

logger = logging.getLogger(__name__)


class MongoDBService:
    """MongoDB service with connection pooling and record write-through."""

    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/quake_response_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'quake_response_dev')
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
                    retryReads=True,
                    tz_aware=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
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
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

    def _validate_object_id(self, doc_id: str) -> ObjectId:
        """Validate and convert string ID to ObjectId."""
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            raise ValueError(f"Invalid ObjectId format: {doc_id}")

    # Record write-through

    def upsert_record(self, collection: str, document: Dict[str, Any]) -> None:
        """Insert or replace a record document keyed by its id."""
        document = dict(document)
        object_id = self._validate_object_id(document.pop("id"))
        document["_id"] = object_id

        try:
            self.get_collection(collection).replace_one({"_id": object_id}, document, upsert=True)
            logger.debug(f"Upserted document {object_id} in {collection}")
        except Exception as e:
            logger.error(f"Failed to upsert document {object_id} in {collection}: {e}")
            raise

    def delete_record(self, collection: str, record_id: str) -> None:
        """Hard delete a record document."""
        object_id = self._validate_object_id(record_id)

        try:
            result = self.get_collection(collection).delete_one({"_id": object_id})
            if result.deleted_count == 0:
                logger.warning(f"No document deleted for {record_id} in {collection}")
            else:
                logger.info(f"Deleted document {record_id} in {collection}")
        except Exception as e:
            logger.error(f"Failed to delete document {record_id} in {collection}: {e}")
            raise

    def load_records(self, collection: str) -> List[Dict[str, Any]]:
        """Load every document of a collection with ``_id`` mapped back to ``id``."""
        try:
            documents = list(self.get_collection(collection).find({}))

            # Convert ObjectId to string for the record models
            for doc in documents:
                doc["id"] = str(doc.pop("_id"))

            logger.debug(f"Loaded {len(documents)} documents from {collection}")
            return documents

        except Exception as e:
            logger.error(f"Failed to load documents from {collection}: {e}")
            raise

    # Index Management

    def create_indexes(self) -> None:
        """Create lookup indexes for all collections."""
        try:
            logger.info("Creating MongoDB indexes...")

            actors = self.get_collection("actors")
            actors.create_index("email", unique=True)
            actors.create_index([("role", ASCENDING), ("organizationId", ASCENDING)])

            pins = self.get_collection("pins")
            pins.create_index([("status", ASCENDING), ("kind", ASCENDING), ("createdAt", DESCENDING)])

            requests = self.get_collection("help_requests")
            requests.create_index([("status", ASCENDING), ("urgency", ASCENDING), ("requestedAt", DESCENDING)])
            requests.create_index("assignedVolunteerId")

            volunteers = self.get_collection("volunteers")
            volunteers.create_index([("organizationId", ASCENDING), ("status", ASCENDING)])

            organizations = self.get_collection("organizations")
            organizations.create_index([("status", ASCENDING), ("region", ASCENDING)])
            organizations.create_index("credentials.username", unique=True)

            audit_logs = self.get_collection("audit_logs")
            audit_logs.create_index([("entity", ASCENDING), ("timestamp", DESCENDING)])
            audit_logs.create_index([("actorId", ASCENDING), ("timestamp", DESCENDING)])
            audit_logs.create_index("traceId")

            logger.info("MongoDB indexes created successfully")

        except Exception as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise

