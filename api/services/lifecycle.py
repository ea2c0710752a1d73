# SPDX-License-Identifier: Apache-2.0

"""
Complaint lifecycle engine.

Owns the authoritative snapshot of each complaint in one citizen session,
recomputes the confirmation predicate on demand and executes the citizen's
Accept and Reject decisions against the store, evidence storage and geo
resolver.

Callers serialise actions per complaint id; the engine has no locking of
its own.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from domain import complaints as complaint_domain
from domain.errors import (
    CustomException,
    NotFoundException,
    PersistenceFailureException,
    UploadFailureException,
)
from models.base import utcnow
from models.entities import Complaint, ComplaintChange, EvidenceCandidate, Resubmission
from services.geo import GeoResolver, LocationProvider

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ComplaintRepository(Protocol):
    async def find_complaint(self, complaint_id: str) -> Optional[Complaint]: ...

    async def find_fields(self, complaint_id: str, fields) -> Optional[Dict[str, Any]]: ...

    async def update_complaint(self, complaint_id: str, updates: Dict[str, Any]) -> Complaint: ...


class EvidenceUploader(Protocol):
    async def upload(self, data: bytes, key: str, content_type: str) -> None: ...

    def get_public_url(self, key: str) -> str: ...


class LifecycleEngine:
    """Confirmation state machine for one citizen session."""

    def __init__(
        self,
        store: ComplaintRepository,
        uploader: EvidenceUploader,
        geo_resolver: GeoResolver,
        clock: Callable[[], datetime] = utcnow
    ):
        self.store = store
        self.uploader = uploader
        self.geo_resolver = geo_resolver
        self.clock = clock
        self._snapshots: Dict[str, Complaint] = {}

    # Snapshot view

    def snapshot(self, complaint_id: str) -> Optional[Complaint]:
        """Current view of a complaint, if the engine holds one."""
        return self._snapshots.get(complaint_id)

    def apply_snapshot(self, complaint: Complaint) -> Complaint:
        """Keep whichever of the held and offered snapshots is newer."""
        current = self._snapshots.get(complaint.id)
        if complaint_domain.is_newer_snapshot(complaint, current):
            self._snapshots[complaint.id] = complaint
            return complaint

        logger.debug(
            f"Ignoring stale snapshot for complaint {complaint.id}",
            extra={"offered": complaint.updated_at, "held": current.updated_at}
        )
        return current

    def forget(self, complaint_id: str) -> None:
        self._snapshots.pop(complaint_id, None)

    def needs_confirmation(self, complaint_id: str, now: Optional[datetime] = None) -> bool:
        """Predicate evaluated against the held snapshot; never cached."""
        complaint = self._snapshots.get(complaint_id)
        if complaint is None:
            return False
        return complaint_domain.needs_confirmation(complaint, now or self.clock())

    def pending_confirmations(self, now: Optional[datetime] = None) -> List[str]:
        """Ids of held complaints whose confirmation prompt is due."""
        return complaint_domain.pending_confirmation_ids(list(self._snapshots.values()), now or self.clock())

    async def refresh(self, complaint_id: str) -> Optional[Complaint]:
        """Re-read a complaint from the store and reconcile the snapshot."""
        complaint = await self.store.find_complaint(complaint_id)
        if complaint is None:
            self.forget(complaint_id)
            return None
        return self.apply_snapshot(complaint)

    async def reconcile(self, change: ComplaintChange) -> Optional[Complaint]:
        """
        Handle one change event.

        The event body is never taken as final: the complaint is re-read
        from the store and the newer of the held and fetched snapshots wins.
        """
        with tracer.start_as_current_span(
            "lifecycle.reconcile",
            attributes={"complaint.id": change.complaint_id, "change.operation": change.operation}
        ):
            complaint = await self.refresh(change.complaint_id)
            if complaint is not None and self.needs_confirmation(complaint.id):
                logger.info(
                    f"Complaint {complaint.id} awaits citizen confirmation",
                    extra={"status": complaint.status, "updated_at": complaint.updated_at}
                )
            return complaint

    async def run(self, subscription) -> None:
        """Consume a change subscription until it is closed."""
        async for change in subscription:
            try:
                await self.reconcile(change)
            except CustomException as e:
                logger.error(f"Failed to reconcile complaint {change.complaint_id}: {e.message}")

    # Citizen actions

    async def accept(self, complaint_id: str) -> Complaint:
        """
        Acknowledge the latest administrative change.

        Only the acknowledgment stamp is written; status is untouched.

        Raises:
            NotFoundException: Unknown complaint
            PersistenceFailureException: The store rejected the write
        """
        with tracer.start_as_current_span(
            "lifecycle.accept",
            attributes={"complaint.id": complaint_id}
        ) as span:
            updates = complaint_domain.build_accept_update(self.clock())
            try:
                complaint = await self.store.update_complaint(complaint_id, updates)
            except CustomException as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                raise
            except Exception as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise PersistenceFailureException(f"Failed to accept complaint {complaint_id}") from e

            logger.info(f"Complaint {complaint_id} accepted", extra={"status": complaint.status})
            span.set_status(Status(StatusCode.OK))
            return self.apply_snapshot(complaint)

    async def reject(
        self,
        complaint_id: str,
        evidence: EvidenceCandidate,
        location_provider: LocationProvider
    ) -> Resubmission:
        """
        Reject the latest administrative change and resubmit evidence.

        Steps run strictly in order and none is retried: read the preserved
        fields, resolve the location, upload the evidence, fetch its public
        reference, write the complaint once. Any failure before the final
        write leaves the complaint untouched.

        Raises:
            NotFoundException: Unknown complaint
            PermissionDeniedException: Positioning permission refused
            NoCoordinateAvailableException: No coordinate could be resolved
            UploadFailureException: Evidence storage failed
            PersistenceFailureException: Final write failed; evidence orphaned
        """
        with tracer.start_as_current_span(
            "lifecycle.reject",
            attributes={"complaint.id": complaint_id}
        ) as span:
            try:
                preserved = await self.store.find_fields(complaint_id, complaint_domain.PRESERVED_FIELDS)
                if preserved is None:
                    raise NotFoundException(f"Complaint {complaint_id} not found")

                location = await self.geo_resolver.resolve_evidence(evidence, location_provider)
                span.set_attribute("geo.source", location.source.value)

                key = complaint_domain.generate_evidence_key(complaint_id, evidence.extension)
                photo_url = await self._upload(evidence, key)

                updates = complaint_domain.build_resubmission_update(location, photo_url, self.clock())
                complaint = await self._persist_resubmission(complaint_id, updates, key)
            except CustomException as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                logger.warning(
                    f"Reject failed for complaint {complaint_id}",
                    extra={"error_type": e.error_type}
                )
                raise

            span.set_status(Status(StatusCode.OK))
            logger.info(
                f"Complaint {complaint_id} resubmitted with new evidence",
                extra={"evidence_key": key, "source": location.source.value}
            )
            return Resubmission(
                complaint=self.apply_snapshot(complaint),
                location=location,
                evidence_key=key,
                preserved=preserved
            )

    async def _upload(self, evidence: EvidenceCandidate, key: str) -> str:
        try:
            await self.uploader.upload(evidence.content, key, evidence.content_type)
        except UploadFailureException:
            raise
        except Exception as e:
            logger.error(f"Evidence upload failed for {key}: {e}")
            raise UploadFailureException("Evidence upload failed") from e
        return self.uploader.get_public_url(key)

    async def _persist_resubmission(self, complaint_id: str, updates: Dict[str, Any], key: str) -> Complaint:
        try:
            return await self.store.update_complaint(complaint_id, updates)
        except PersistenceFailureException as e:
            e.orphaned_key = key
            logger.error(f"Resubmission write failed; evidence {key} is unreferenced")
            raise
        except CustomException:
            raise
        except Exception as e:
            logger.error(f"Resubmission write failed; evidence {key} is unreferenced: {e}")
            raise PersistenceFailureException(
                f"Failed to update complaint {complaint_id}", orphaned_key=key
            ) from e
