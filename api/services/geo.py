# SPDX-License-Identifier: Apache-2.0

"""
Geographic resolution of evidence.

Derives a coordinate from image metadata or, failing that, from live device
positioning, then attaches a best-effort address. Coordinate resolution is
mandatory; address resolution never fails the attempt.
"""

import asyncio
import io
import logging
from typing import Any, Dict, Optional, Protocol

from PIL import ExifTags, Image
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from domain.errors import NoCoordinateAvailableException, PermissionDeniedException
from domain.geolocation import ADDRESS_PLACEHOLDER, coordinate_from_metadata, format_address
from models.entities import Coordinate, EvidenceCandidate, ResolvedLocation
from models.enums import CoordinateSource

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

GPS_INFO_IFD = 0x8825


class LocationProvider(Protocol):
    """Live device positioning."""

    async def request_permission(self) -> bool:
        """Ask for foreground positioning permission."""
        ...

    async def current_position(self) -> Optional[Coordinate]:
        """Current device position, or None when unavailable."""
        ...


class ReverseGeocoder(Protocol):
    async def reverse(self, coordinate: Coordinate) -> Dict[str, Optional[str]]:
        ...


class ReportedLocationProvider:
    """Positioning as reported by a remote client along with its request."""

    def __init__(self, permission_granted: bool, position: Optional[Coordinate] = None):
        self.permission_granted = permission_granted
        self.position = position

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def current_position(self) -> Optional[Coordinate]:
        return self.position if self.permission_granted else None


def read_image_gps_tags(content: bytes) -> Optional[Dict[str, Any]]:
    """GPS tags embedded in an image, keyed by EXIF tag name."""
    try:
        with Image.open(io.BytesIO(content)) as image:
            gps_ifd = image.getexif().get_ifd(GPS_INFO_IFD)
    except (OSError, ValueError, SyntaxError) as e:
        logger.debug(f"Could not read image metadata: {e}")
        return None

    if not gps_ifd:
        return None
    return {ExifTags.GPSTAGS.get(tag, tag): value for tag, value in gps_ifd.items()}


class GeoResolver:
    """Resolves coordinates and addresses for new evidence."""

    def __init__(self, geocoder: Optional[ReverseGeocoder] = None):
        self.geocoder = geocoder

    async def resolve_evidence(
        self,
        evidence: EvidenceCandidate,
        location_provider: LocationProvider
    ) -> ResolvedLocation:
        """
        Resolve the location of an evidence candidate.

        Metadata sent by the client wins; GPS tags embedded in the image are
        used when the client sent none that parse.
        """
        metadata = evidence.metadata
        if coordinate_from_metadata(metadata) is None and evidence.content:
            embedded = await asyncio.to_thread(read_image_gps_tags, evidence.content)
            if embedded:
                metadata = embedded
        return await self.resolve(metadata, location_provider)

    async def resolve(
        self,
        metadata: Optional[Dict[str, Any]],
        location_provider: LocationProvider
    ) -> ResolvedLocation:
        """
        Resolve a coordinate and best-effort address.

        Args:
            metadata: EXIF-style tags, possibly absent or malformed
            location_provider: Live positioning fallback

        Returns:
            ResolvedLocation with the coordinate source

        Raises:
            PermissionDeniedException: Positioning permission refused
            NoCoordinateAvailableException: No source produced a coordinate
        """
        with tracer.start_as_current_span("geo.resolve") as span:
            coordinate = coordinate_from_metadata(metadata)
            source = CoordinateSource.METADATA

            if coordinate is None:
                source = CoordinateSource.DEVICE
                span.set_attribute("geo.metadata", "absent" if not metadata else "invalid")
                coordinate = await self._device_coordinate(location_provider, span)

            span.set_attribute("geo.source", source.value)
            address = await self.resolve_address(coordinate)

            logger.info(
                "Resolved evidence location",
                extra={"source": source.value, "address_resolved": address != ADDRESS_PLACEHOLDER}
            )
            return ResolvedLocation(coordinate=coordinate, address=address, source=source)

    async def _device_coordinate(self, location_provider: LocationProvider, span) -> Coordinate:
        try:
            granted = await location_provider.request_permission()
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, "Permission request failed"))
            logger.warning(f"Location permission request failed: {e}")
            raise PermissionDeniedException() from e

        if not granted:
            span.set_status(Status(StatusCode.ERROR, "Location permission denied"))
            logger.warning("Location permission denied")
            raise PermissionDeniedException()

        try:
            position = await location_provider.current_position()
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, "Positioning failed"))
            logger.warning(f"Device positioning failed: {e}")
            raise NoCoordinateAvailableException() from e

        if position is None:
            span.set_status(Status(StatusCode.ERROR, "No coordinate available"))
            raise NoCoordinateAvailableException()
        return position

    async def resolve_address(self, coordinate: Coordinate) -> str:
        """Reverse geocode, degrading to the placeholder on any failure."""
        if self.geocoder is None:
            return ADDRESS_PLACEHOLDER

        with tracer.start_as_current_span("geo.reverse_geocode") as span:
            try:
                parts = await self.geocoder.reverse(coordinate)
            except Exception as e:
                span.record_exception(e)
                logger.warning(f"Geocoding error: {e}")
                return ADDRESS_PLACEHOLDER
        return format_address(parts)
