# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for complaint confirmation domain logic.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from domain import complaints as complaint_domain
from models.entities import Complaint, Coordinate, ResolvedLocation
from models.enums import CoordinateSource

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_complaint(updated_days_ago=None, submitted_days_ago=None, **fields):
    return Complaint(
        owner_id="citizen-1",
        status=fields.pop("status", "verified"),
        updated_at=NOW - timedelta(days=updated_days_ago) if updated_days_ago is not None else None,
        submitted_date=NOW - timedelta(days=submitted_days_ago) if submitted_days_ago is not None else None,
        **fields
    )


class TestNeedsConfirmation:
    """Test the confirmation predicate."""

    def test_recent_unacknowledged_change(self):
        assert complaint_domain.needs_confirmation(make_complaint(1, 2), NOW) is True

    def test_change_older_than_window(self):
        assert complaint_domain.needs_confirmation(make_complaint(8, 9), NOW) is False

    def test_acknowledged_change(self):
        assert complaint_domain.needs_confirmation(make_complaint(2, 1), NOW) is False

    def test_window_boundary_is_inclusive(self):
        assert complaint_domain.needs_confirmation(make_complaint(7, 8), NOW) is True

    def test_equal_timestamps_need_no_confirmation(self):
        assert complaint_domain.needs_confirmation(make_complaint(1, 1), NOW) is False

    def test_missing_timestamps(self):
        assert complaint_domain.needs_confirmation(make_complaint(None, 2), NOW) is False
        assert complaint_domain.needs_confirmation(make_complaint(1, None), NOW) is False

    def test_naive_timestamps_are_treated_as_utc(self):
        complaint = make_complaint()
        complaint.updated_at = (NOW - timedelta(hours=1)).replace(tzinfo=None)
        complaint.submitted_date = (NOW - timedelta(hours=2)).replace(tzinfo=None)

        assert complaint_domain.needs_confirmation(complaint, NOW) is True


class TestUpdateDocuments:
    """Test Accept and Reject update documents."""

    def test_accept_writes_only_the_stamp(self):
        update = complaint_domain.build_accept_update(NOW)

        assert update == {"submittedDate": NOW + timedelta(seconds=2)}
        assert "status" not in update

    def test_resubmission_resets_status_and_location(self):
        location = ResolvedLocation(
            coordinate=Coordinate(latitude=40.0, longitude=-74.0),
            address="Broadway, New York",
            source=CoordinateSource.METADATA
        )

        update = complaint_domain.build_resubmission_update(location, "https://x/evidence/1.jpg", NOW)

        assert update == {
            "photoUrl": "https://x/evidence/1.jpg",
            "latitude": 40.0,
            "longitude": -74.0,
            "location": "Broadway, New York",
            "status": "pending",
            "submittedDate": NOW + timedelta(seconds=2),
        }

    def test_evidence_keys_are_unique(self):
        first = complaint_domain.generate_evidence_key("abc", "JPG")
        second = complaint_domain.generate_evidence_key("abc", "jpg")

        assert first != second
        assert re.fullmatch(r"complaints/abc/[0-9a-f]{32}\.jpg", first)


class TestSnapshotOrdering:
    """Test snapshot reconciliation ordering."""

    def test_no_current_snapshot(self):
        assert complaint_domain.is_newer_snapshot(make_complaint(1, 2), None) is True

    def test_later_update_wins(self):
        older = make_complaint(3, 4)
        newer = make_complaint(1, 4)

        assert complaint_domain.is_newer_snapshot(newer, older) is True
        assert complaint_domain.is_newer_snapshot(older, newer) is False

    def test_equal_update_prefers_fresh_read(self):
        assert complaint_domain.is_newer_snapshot(make_complaint(1, 2), make_complaint(1, 3)) is True


class TestHalRepresentation:
    """Test complaint serialisation and affordance links."""

    def test_links_offered_while_confirmation_due(self):
        complaint = make_complaint(1, 2, id="c1", photo_url="https://x/e.jpg")

        links = complaint_domain.build_confirmation_links(complaint, NOW)

        assert links["accept"]["href"] == "/api/complaints/c1/accept"
        assert links["reject"]["type"] == "multipart/form-data"
        assert links["evidence"]["href"] == "https://x/e.jpg"

    def test_no_affordances_once_acknowledged(self):
        links = complaint_domain.build_confirmation_links(make_complaint(2, 1, id="c1"), NOW)

        assert set(links) == {"self"}

    def test_serialized_complaint(self):
        complaint = make_complaint(1, 2, id="c1", category_id="roads")

        data = complaint_domain.serialize_complaint(complaint, NOW)

        assert data["id"] == "c1"
        assert data["ownerId"] == "citizen-1"
        assert data["categoryId"] == "roads"
        assert data["needsConfirmation"] is True
        assert data["confirmationExpiresAt"] == (NOW + timedelta(days=6)).isoformat()

    def test_pending_confirmation_ids(self):
        complaints = [make_complaint(1, 2, id="due"), make_complaint(2, 1, id="done"), make_complaint(9, 10, id="old")]

        assert complaint_domain.pending_confirmation_ids(complaints, NOW) == ["due"]
