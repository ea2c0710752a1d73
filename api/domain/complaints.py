# SPDX-License-Identifier: Apache-2.0

"""
Complaint confirmation domain logic.

This module contains pure functions for the citizen confirmation workflow:
the confirmation predicate, acknowledgment stamps, update documents for
Accept and Reject, snapshot ordering and HAL response transformation.
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from models.base import ensure_utc
from models.entities import Complaint, ResolvedLocation
from models.enums import ComplaintStatus


CONFIRMATION_WINDOW = timedelta(days=7)

# Must exceed the round trip of the acknowledging write itself so the
# server-assigned updatedAt lands before the stamp.
ACKNOWLEDGMENT_OFFSET = timedelta(seconds=2)

PRESERVED_FIELDS = ("title", "description", "categoryId")


def needs_confirmation(complaint: Complaint, now: datetime) -> bool:
    """
    Check whether the citizen must be shown an administrative change.

    True exactly when the last update happened after the citizen's
    acknowledgment marker and no longer than the confirmation window ago.

    Args:
        complaint: Current complaint snapshot
        now: Reference time (timezone-aware)

    Returns:
        True if a confirmation prompt is due
    """
    updated_at = ensure_utc(complaint.updated_at)
    submitted_date = ensure_utc(complaint.submitted_date)
    if updated_at is None or submitted_date is None:
        return False

    return updated_at > submitted_date and now - updated_at <= CONFIRMATION_WINDOW


def confirmation_expires_at(complaint: Complaint) -> Optional[datetime]:
    """When a pending confirmation lapses on its own."""
    updated_at = ensure_utc(complaint.updated_at)
    if updated_at is None:
        return None
    return updated_at + CONFIRMATION_WINDOW


def acknowledgment_stamp(now: datetime) -> datetime:
    """submittedDate value that sorts after the updatedAt of the write carrying it."""
    return now + ACKNOWLEDGMENT_OFFSET


def build_accept_update(now: datetime) -> Dict[str, Any]:
    """Fields persisted by Accept. Status is never part of this update."""
    return {"submittedDate": acknowledgment_stamp(now)}


def build_resubmission_update(
    location: ResolvedLocation,
    photo_url: str,
    now: datetime
) -> Dict[str, Any]:
    """
    Fields persisted by Reject, written together in one update.

    Args:
        location: Coordinate and address resolved from the new evidence
        photo_url: Public reference of the uploaded evidence
        now: Reference time for the acknowledgment stamp

    Returns:
        Update document in store field names
    """
    return {
        "photoUrl": photo_url,
        "latitude": location.coordinate.latitude,
        "longitude": location.coordinate.longitude,
        "location": location.address,
        "status": ComplaintStatus.PENDING.value,
        "submittedDate": acknowledgment_stamp(now),
    }


def generate_evidence_key(complaint_id: str, extension: str = "jpg") -> str:
    """Fresh, collision-free storage key for one evidence upload."""
    extension = (extension or "jpg").lstrip('.').lower()
    return f"complaints/{complaint_id}/{uuid.uuid4().hex}.{extension}"


def is_newer_snapshot(candidate: Complaint, current: Optional[Complaint]) -> bool:
    """
    Decide whether a freshly read snapshot should replace the held one.

    Snapshots are ordered by updatedAt only; equal timestamps prefer the
    fresh read. Arrival order of change events is irrelevant.
    """
    if current is None:
        return True

    candidate_at = ensure_utc(candidate.updated_at)
    current_at = ensure_utc(current.updated_at)
    if candidate_at is None:
        return current_at is None
    if current_at is None:
        return True
    return candidate_at >= current_at


def serialize_complaint(complaint: Complaint, now: datetime) -> Dict[str, Any]:
    """JSON-ready view of a complaint with its confirmation state."""
    data = complaint.model_dump(mode='json', by_alias=True)
    data["needsConfirmation"] = needs_confirmation(complaint, now)
    expires_at = confirmation_expires_at(complaint)
    data["confirmationExpiresAt"] = (
        expires_at.isoformat() if expires_at and data["needsConfirmation"] else None
    )
    return data


def build_confirmation_links(complaint: Complaint, now: datetime) -> Dict[str, Dict[str, Any]]:
    """
    Build HAL links for a complaint.

    Accept and reject affordances appear only while a confirmation is due.
    """
    base_path = f"/api/complaints/{complaint.id}"
    links: Dict[str, Dict[str, Any]] = {
        "self": {"href": base_path, "method": "GET", "title": "Self"},
    }

    if complaint.photo_url:
        links["evidence"] = {"href": complaint.photo_url, "method": "GET", "title": "Evidence"}

    if needs_confirmation(complaint, now):
        links["accept"] = {
            "href": f"{base_path}/accept",
            "method": "POST",
            "title": f'Accept status "{complaint.status}"',
        }
        links["reject"] = {
            "href": f"{base_path}/reject",
            "method": "POST",
            "type": "multipart/form-data",
            "title": "Reject and resubmit evidence",
        }

    return links


def pending_confirmation_ids(complaints: List[Complaint], now: datetime) -> List[str]:
    """Ids of complaints whose confirmation prompt is currently due."""
    return [complaint.id for complaint in complaints if needs_confirmation(complaint, now)]
