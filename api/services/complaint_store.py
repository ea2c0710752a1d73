# SPDX-License-Identifier: Apache-2.0

"""
Complaint store backed by MongoDB.

Per-row reads and updates plus the owner-filtered change stream. Driver
calls are blocking and are pushed to worker threads so the workflow never
blocks the event loop.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional

from pymongo import ReturnDocument
from pymongo.change_stream import ChangeStream
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from opentelemetry import trace

from domain.errors import (
    NotFoundException,
    PersistenceFailureException,
    ServiceUnavailableException,
)
from models.entities import Complaint, ComplaintChange
from models.enums import ChangeOperation
from services.mongodb import MongoDBService, COMPLAINTS_COLLECTION

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ComplaintStore:
    """Durable complaint records with per-row read/update and a change feed."""

    def __init__(self, mongodb_service: MongoDBService, collection_name: str = COMPLAINTS_COLLECTION):
        self.mongodb_service = mongodb_service
        self.collection_name = collection_name

    @property
    def collection(self) -> Collection:
        return self.mongodb_service.get_collection(self.collection_name)

    def _object_id(self, complaint_id: str):
        try:
            return MongoDBService.to_object_id(complaint_id)
        except ValueError:
            raise NotFoundException(f"Complaint {complaint_id} not found")

    async def find_complaint(self, complaint_id: str) -> Optional[Complaint]:
        """Read the full complaint row, or None when it does not exist."""
        object_id = self._object_id(complaint_id)
        with tracer.start_as_current_span("db.complaint.find") as span:
            span.set_attributes({"db.collection": self.collection_name, "complaint.id": complaint_id})
            try:
                document = await asyncio.to_thread(self.collection.find_one, {"_id": object_id})
            except PyMongoError as e:
                logger.error(f"Failed to read complaint {complaint_id}: {e}")
                raise ServiceUnavailableException("Complaint store is unreachable") from e

        if document is None:
            logger.debug(f"Complaint {complaint_id} not found")
            return None
        return Complaint.from_document(document)

    async def find_fields(self, complaint_id: str, fields: Iterable[str]) -> Optional[Dict[str, Any]]:
        """Read only the named fields of one complaint."""
        object_id = self._object_id(complaint_id)
        projection = {field: 1 for field in fields}
        projection["_id"] = 0
        with tracer.start_as_current_span("db.complaint.find_fields") as span:
            span.set_attributes({"db.collection": self.collection_name, "complaint.id": complaint_id})
            try:
                return await asyncio.to_thread(
                    self.collection.find_one, {"_id": object_id}, projection
                )
            except PyMongoError as e:
                logger.error(f"Failed to read complaint {complaint_id}: {e}")
                raise ServiceUnavailableException("Complaint store is unreachable") from e

    async def update_complaint(self, complaint_id: str, updates: Dict[str, Any]) -> Complaint:
        """
        Apply one atomic update and return the row as written.

        The store assigns updatedAt itself on every mutation.

        Raises:
            NotFoundException: The complaint does not exist
            PersistenceFailureException: The write failed
        """
        object_id = self._object_id(complaint_id)
        with tracer.start_as_current_span("db.complaint.update") as span:
            span.set_attributes({
                "db.collection": self.collection_name,
                "complaint.id": complaint_id,
                "db.fields": ",".join(sorted(updates))
            })
            try:
                document = await asyncio.to_thread(
                    self.collection.find_one_and_update,
                    {"_id": object_id},
                    {"$set": updates, "$currentDate": {"updatedAt": True}},
                    return_document=ReturnDocument.AFTER
                )
            except PyMongoError as e:
                logger.error(f"Failed to update complaint {complaint_id}: {e}")
                raise PersistenceFailureException(f"Failed to update complaint {complaint_id}") from e

        if document is None:
            logger.warning(f"No complaint updated for {complaint_id}")
            raise NotFoundException(f"Complaint {complaint_id} not found")

        logger.info(f"Updated complaint {complaint_id}", extra={"fields": sorted(updates)})
        return Complaint.from_document(document)

    def watch_owner(self, owner_id: str) -> ChangeStream:
        """Open a blocking change stream limited to one owner's complaints."""
        pipeline = [{
            "$match": {
                "$or": [
                    {"fullDocument.ownerId": owner_id},
                    {"fullDocumentBeforeChange.ownerId": owner_id}
                ]
            }
        }]
        logger.info(f"Opening complaint change stream for owner {owner_id}")
        return self.collection.watch(
            pipeline,
            full_document="updateLookup",
            full_document_before_change="whenAvailable"
        )

    @staticmethod
    def parse_change(event: Dict[str, Any]) -> Optional[ComplaintChange]:
        """Convert a raw change stream event; None for unsupported operations."""
        try:
            operation = ChangeOperation(event.get("operationType"))
        except ValueError:
            logger.debug(f"Ignoring change event of type {event.get('operationType')}")
            return None

        document_key = event.get("documentKey") or {}
        document = event.get("fullDocument") or event.get("fullDocumentBeforeChange") or {}
        return ComplaintChange(
            operation=operation,
            complaint_id=str(document_key.get("_id")),
            owner_id=document.get("ownerId"),
            payload=document
        )
