# SPDX-License-Identifier: Apache-2.0

"""
Evidence storage on GridFS.

Stores evidence images under caller-chosen keys and hands out public URLs
served by the evidence endpoint.
"""

import asyncio
import logging
import os
from typing import Optional, Tuple

import gridfs
from gridfs.errors import NoFile
from pymongo.errors import PyMongoError
from opentelemetry import trace

from domain.errors import NotFoundException, UploadFailureException
from services.mongodb import MongoDBService

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class EvidenceStorageService:
    """Binary evidence store with public references."""

    def __init__(
        self,
        mongodb_service: MongoDBService,
        public_base_url: Optional[str] = None,
        bucket_name: Optional[str] = None
    ):
        self.mongodb_service = mongodb_service
        self.public_base_url = (public_base_url or os.getenv('PUBLIC_BASE_URL', 'http://localhost:5000')).rstrip('/')
        self.bucket_name = bucket_name or os.getenv('EVIDENCE_BUCKET', 'evidence')
        self._bucket: Optional[gridfs.GridFSBucket] = None

    @property
    def bucket(self) -> gridfs.GridFSBucket:
        if self._bucket is None:
            self._bucket = gridfs.GridFSBucket(self.mongodb_service.database, bucket_name=self.bucket_name)
        return self._bucket

    def _exists(self, key: str) -> bool:
        files = self.mongodb_service.get_collection(f"{self.bucket_name}.files")
        return files.count_documents({"filename": key}, limit=1) > 0

    def _store(self, data: bytes, key: str, content_type: str) -> None:
        if self._exists(key):
            raise FileExistsError(key)
        self.bucket.upload_from_stream(key, data, metadata={"contentType": content_type})

    async def upload(self, data: bytes, key: str, content_type: str) -> None:
        """
        Store one evidence object.

        Raises:
            UploadFailureException: The key is taken or the store refused the write
        """
        with tracer.start_as_current_span("storage.evidence.upload") as span:
            span.set_attributes({
                "storage.bucket": self.bucket_name,
                "storage.key": key,
                "storage.size": len(data),
                "storage.content_type": content_type
            })
            try:
                await asyncio.to_thread(self._store, data, key, content_type)
            except FileExistsError as e:
                logger.error(f"Evidence key already in use: {key}")
                raise UploadFailureException(f"Evidence key {key} already exists") from e
            except PyMongoError as e:
                logger.error(f"Failed to upload evidence {key}: {e}")
                raise UploadFailureException("Evidence upload failed") from e

        logger.info(f"Uploaded evidence {key}", extra={"size": len(data), "content_type": content_type})

    def get_public_url(self, key: str) -> str:
        """Public reference for a stored object; readable without authorization."""
        return f"{self.public_base_url}/api/evidence/{key}"

    def _read(self, key: str) -> Tuple[bytes, str]:
        grid_out = self.bucket.open_download_stream_by_name(key)
        metadata = grid_out.metadata or {}
        return grid_out.read(), metadata.get("contentType", "application/octet-stream")

    async def download(self, key: str) -> Tuple[bytes, str]:
        """Read a stored object and its content type."""
        try:
            return await asyncio.to_thread(self._read, key)
        except NoFile as e:
            raise NotFoundException(f"Evidence {key} not found") from e
