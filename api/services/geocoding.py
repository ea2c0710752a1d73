# SPDX-License-Identifier: Apache-2.0

"""
Reverse geocoding against an OpenStreetMap Nominatim endpoint.

Usage:
    geocoder = NominatimGeocoder(GeocoderConfig.from_env())
    parts = await geocoder.reverse(Coordinate(latitude=40.0, longitude=-74.0))
    # Returns: {'street': ..., 'city': ..., 'region': ..., 'country': ...}
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
from opentelemetry import trace

from models.entities import Coordinate

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class GeocodingError(Exception):
    """Raised when the geocoding service does not return an address."""
    pass


@dataclass
class GeocoderConfig:
    """Reverse geocoder settings."""
    url: str = "https://nominatim.openstreetmap.org/reverse"
    user_agent: str = "complaint-lifecycle-api/1.0"
    timeout_seconds: float = 10.0
    language: Optional[str] = None

    @classmethod
    def from_env(cls) -> "GeocoderConfig":
        return cls(
            url=os.getenv('GEOCODER_URL', cls.url),
            user_agent=os.getenv('GEOCODER_USER_AGENT', cls.user_agent),
            timeout_seconds=float(os.getenv('GEOCODER_TIMEOUT_SECONDS', str(cls.timeout_seconds))),
            language=os.getenv('GEOCODER_LANGUAGE') or None,
        )


def address_parts_from_nominatim(address: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Map a Nominatim address block onto street/city/region/country."""
    return {
        "street": address.get("road") or address.get("pedestrian") or address.get("footway"),
        "city": address.get("city") or address.get("town") or address.get("village") or address.get("municipality"),
        "region": address.get("state") or address.get("region") or address.get("county"),
        "country": address.get("country"),
    }


class NominatimGeocoder:
    """Reverse geocoder speaking the Nominatim ``/reverse`` API."""

    def __init__(self, config: Optional[GeocoderConfig] = None):
        self.config = config or GeocoderConfig.from_env()

    async def reverse(self, coordinate: Coordinate) -> Dict[str, Optional[str]]:
        """
        Look up the address parts for a coordinate.

        Raises:
            GeocodingError: Non-200 response or no address in the body
            aiohttp.ClientError: Transport failure
        """
        params = {
            "lat": str(coordinate.latitude),
            "lon": str(coordinate.longitude),
            "format": "jsonv2",
            "addressdetails": "1",
        }
        if self.config.language:
            params["accept-language"] = self.config.language

        headers = {"User-Agent": self.config.user_agent}
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        with tracer.start_as_current_span("geocoding.reverse") as span:
            span.set_attribute("geocoding.provider", "nominatim")
            async with aiohttp.ClientSession(headers=headers, timeout=timeout) as session:
                async with session.get(self.config.url, params=params) as response:
                    span.set_attribute("http.status_code", response.status)
                    if response.status != 200:
                        raise GeocodingError(f"Geocoder returned HTTP {response.status}")
                    body = await response.json(content_type=None)

        address = (body or {}).get("address")
        if not address:
            raise GeocodingError((body or {}).get("error") or "No address for coordinate")

        logger.debug(f"Reverse geocoded {coordinate.latitude},{coordinate.longitude}")
        return address_parts_from_nominatim(address)
