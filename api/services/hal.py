# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Complaint resources carry their confirmation affordances as links; errors
are RFC 7807 problem documents with help links.
"""

from datetime import datetime
from typing import Dict, List, Any, Optional
from urllib.parse import urljoin

from domain import complaints as complaint_domain
from models.entities import Complaint, Resubmission
from models.responses import HalLink

PROBLEM_TYPE_BASE = "https://api.complaint-lifecycle.org/problems"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link; absolute hrefs are kept as they are."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )


class HalResponseBuilder:
    """HAL response builder for complaint resources and problems."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)

    def _dump_links(self, links: Dict[str, HalLink]) -> Dict[str, Dict[str, Any]]:
        return {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}

    def build_complaint_response(self, complaint: Complaint, now: datetime) -> Dict[str, Any]:
        """Complaint with needsConfirmation and conditional accept/reject links."""
        response = complaint_domain.serialize_complaint(complaint, now)

        links = {}
        for rel, link in complaint_domain.build_confirmation_links(complaint, now).items():
            links[rel] = self.link_builder.build_link(
                link["href"],
                method=link.get("method", "GET"),
                content_type=link.get("type"),
                title=link.get("title")
            )

        response['_links'] = self._dump_links(links)
        return response

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        extensions: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_TYPE_BASE}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors
        if extensions:
            error_response.update(extensions)

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )

        error_response['_links'] = self._dump_links(links)
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_complaint(self, complaint: Complaint, now: datetime) -> Dict[str, Any]:
        """Format a complaint with its confirmation affordances."""
        return self.builder.build_complaint_response(complaint, now)

    def format_resubmission(self, resubmission: Resubmission, now: datetime) -> Dict[str, Any]:
        """Format the outcome of a reject: the updated complaint plus what was resolved."""
        response = self.format_complaint(resubmission.complaint, now)
        response['_embedded'] = {
            'resolvedLocation': {
                'latitude': resubmission.location.coordinate.latitude,
                'longitude': resubmission.location.coordinate.longitude,
                'address': resubmission.location.address,
                'source': resubmission.location.source.value
            },
            'evidenceKey': resubmission.evidence_key
        }
        return response

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            400,
            detail,
            instance,
            validation_errors
        )

    def format_authentication_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format an authentication error response."""
        return self.builder.build_error_response(
            "authentication-required",
            "Authentication Required",
            401,
            detail,
            instance
        )

    def format_not_found_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format a not found error response."""
        return self.builder.build_error_response(
            "resource-not-found",
            "Resource Not Found",
            404,
            detail,
            instance
        )

    def format_server_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )


def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
