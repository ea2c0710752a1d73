# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for HAL response formatting utilities.
"""

import pytest
from datetime import datetime, timedelta, timezone

from models.entities import Complaint, Coordinate, ResolvedLocation, Resubmission
from models.enums import CoordinateSource
from models.responses import HalLink
from services.hal import HalLinkBuilder, HalFormatter, create_hal_formatter

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def complaint(updated_days_ago, submitted_days_ago, **fields):
    return Complaint(
        id="c1",
        owner_id="citizen-1",
        status=fields.pop("status", "verified"),
        updated_at=NOW - timedelta(days=updated_days_ago),
        submitted_date=NOW - timedelta(days=submitted_days_ago),
        **fields
    )


class TestHalLinkBuilder:
    """Test HAL link builder functionality."""

    def test_build_basic_link(self):
        builder = HalLinkBuilder("https://api.example.com")

        link = builder.build_link("/api/complaints/123")

        assert isinstance(link, HalLink)
        assert link.href == "https://api.example.com/api/complaints/123"
        assert link.method == "GET"
        assert link.type is None

    def test_build_link_with_options(self):
        builder = HalLinkBuilder("https://api.example.com")

        link = builder.build_link(
            "/api/complaints/123/reject",
            method="POST",
            content_type="multipart/form-data",
            title="Reject",
            templated=True
        )

        assert link.method == "POST"
        assert link.type == "multipart/form-data"
        assert link.templated is True

    def test_base_url_with_prefix(self):
        builder = HalLinkBuilder("https://example.com/lifecycle/")

        assert builder.build_link("/api/test").href == "https://example.com/lifecycle/api/test"

    def test_absolute_href_is_kept(self):
        builder = HalLinkBuilder("https://api.example.com")

        assert builder.build_link("https://cdn.example.com/e.jpg").href == "https://cdn.example.com/e.jpg"


class TestComplaintFormatting:
    """Test complaint HAL documents."""

    @pytest.fixture
    def formatter(self):
        return create_hal_formatter("https://api.example.com")

    def test_pending_confirmation_has_affordances(self, formatter):
        response = formatter.format_complaint(complaint(1, 2), NOW)

        assert response["needsConfirmation"] is True
        assert response["_links"]["accept"] == {
            "href": "https://api.example.com/api/complaints/c1/accept",
            "method": "POST",
            "title": 'Accept status "verified"',
        }
        assert response["_links"]["reject"]["type"] == "multipart/form-data"

    def test_acknowledged_complaint_has_no_affordances(self, formatter):
        response = formatter.format_complaint(complaint(2, 1), NOW)

        assert response["needsConfirmation"] is False
        assert set(response["_links"]) == {"self"}

    def test_resubmission(self, formatter):
        resubmission = Resubmission(
            complaint=complaint(0, 0, status="pending"),
            location=ResolvedLocation(
                coordinate=Coordinate(latitude=40.0, longitude=-74.0),
                address="Broadway, New York",
                source=CoordinateSource.METADATA
            ),
            evidence_key="complaints/c1/abc.jpg"
        )

        response = formatter.format_resubmission(resubmission, NOW)

        assert response["status"] == "pending"
        assert response["_embedded"]["resolvedLocation"]["source"] == "metadata"
        assert response["_embedded"]["evidenceKey"] == "complaints/c1/abc.jpg"


class TestErrorResponses:
    """Test RFC 7807 problem documents."""

    def test_error_response(self):
        formatter = HalFormatter("https://api.example.com")

        response = formatter.builder.build_error_response(
            "evidence-upload-failed",
            "Evidence Upload Failed",
            502,
            "Evidence upload failed",
            "/api/complaints/c1/reject",
            extensions={"retryable": True}
        )

        assert response["type"].endswith("/problems/evidence-upload-failed")
        assert response["status"] == 502
        assert response["instance"] == "/api/complaints/c1/reject"
        assert response["retryable"] is True
        assert response["_links"]["help"]["href"] == "https://api.example.com/docs/errors#evidence-upload-failed"

    def test_validation_error_links_schema(self):
        formatter = HalFormatter("https://api.example.com")

        response = formatter.format_validation_error(
            "Invalid form", "/api/complaints/c1/reject", [{"field": "image", "message": "Field required"}]
        )

        assert response["status"] == 400
        assert response["errors"][0]["field"] == "image"
        assert "schema" in response["_links"]

    def test_not_found(self):
        response = HalFormatter("https://api.example.com").format_not_found_error("gone", "/x")

        assert response["status"] == 404
        assert response["title"] == "Resource Not Found"
