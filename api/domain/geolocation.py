# SPDX-License-Identifier: Apache-2.0

"""
Geolocation domain logic.

Pure functions that lift GPS tags out of loosely-typed image metadata,
convert degrees/minutes/seconds to signed decimals and format reverse
geocoding results. Nothing here performs I/O.
"""

import math
import numbers
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from pydantic import ValidationError

from models.entities import Coordinate, GpsMetadata


ADDRESS_PLACEHOLDER = "Location not available"

ADDRESS_PARTS = ("street", "city", "region", "country")

LATITUDE_REFS = ("N", "S")
LONGITUDE_REFS = ("E", "W")
NEGATIVE_REFS = ("S", "W")


def parse_rational(value: Any) -> Optional[float]:
    """
    Parse one DMS component.

    Accepts real numbers (including EXIF rational objects) and strings holding
    either a plain number or ``"numerator/denominator"``.

    Returns:
        The component as float, or None when it is not a finite number
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, numbers.Real):
        try:
            result = float(value)
        except (ZeroDivisionError, ValueError, TypeError, OverflowError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if '/' in text:
            numerator, _, denominator = text.partition('/')
            try:
                num = float(numerator)
                den = float(denominator)
            except ValueError:
                return None
            if den == 0:
                return None
            result = num / den
        else:
            try:
                result = float(text)
            except ValueError:
                return None
    else:
        return None

    return result if math.isfinite(result) else None


def parse_triple(values: Any) -> Optional[tuple]:
    """Parse a three-component angular triple; None if any component is invalid."""
    if isinstance(values, Mapping):
        values = values.get('values')
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        return None

    components = list(values)
    if len(components) < 3:
        return None

    parsed = [parse_rational(component) for component in components[:3]]
    if any(component is None for component in parsed):
        return None
    return tuple(parsed)


def dms_to_decimal(dms: Sequence[Any], ref: Optional[str] = None) -> Optional[float]:
    """
    Convert a degrees/minutes/seconds triple to a signed decimal.

    Args:
        dms: Three components, each numeric or a "N/D" rational string
        ref: Hemisphere flag; S and W negate the result

    Returns:
        Decimal degrees, or None when the triple is invalid
    """
    triple = parse_triple(dms)
    if triple is None:
        return None

    degrees, minutes, seconds = triple
    decimal = degrees + minutes / 60 + seconds / 3600
    if not math.isfinite(decimal):
        return None
    if ref and ref.strip().upper() in NEGATIVE_REFS:
        decimal = -decimal
    return decimal


def _normalise_ref(value: Any, allowed: Sequence[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Reference flag must be a string, got {type(value).__name__}")
    ref = value.strip().upper()
    if ref not in allowed:
        raise ValueError(f"Reference flag {value!r} not in {allowed}")
    return ref


def extract_gps_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[GpsMetadata]:
    """
    Lift validated GPS tags out of an EXIF-style mapping.

    Returns:
        GpsMetadata when both triples parse and the flags are valid,
        otherwise None (absent or invalid metadata)
    """
    if not metadata:
        return None

    latitude = parse_triple(metadata.get('GPSLatitude'))
    longitude = parse_triple(metadata.get('GPSLongitude'))
    if latitude is None or longitude is None:
        return None

    try:
        return GpsMetadata(
            latitude=latitude,
            latitude_ref=_normalise_ref(metadata.get('GPSLatitudeRef'), LATITUDE_REFS),
            longitude=longitude,
            longitude_ref=_normalise_ref(metadata.get('GPSLongitudeRef'), LONGITUDE_REFS),
        )
    except (ValueError, ValidationError):
        return None


def gps_to_coordinate(gps: GpsMetadata) -> Coordinate:
    """Convert validated GPS tags to a decimal coordinate."""
    return Coordinate(
        latitude=dms_to_decimal(gps.latitude, gps.latitude_ref),
        longitude=dms_to_decimal(gps.longitude, gps.longitude_ref),
    )


def coordinate_from_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[Coordinate]:
    """Coordinate from image metadata, or None when absent/invalid."""
    gps = extract_gps_metadata(metadata)
    return gps_to_coordinate(gps) if gps else None


def format_address(parts: Optional[Dict[str, Any]]) -> str:
    """
    Join street, city, region and country, skipping empty parts.

    Falls back to the placeholder when nothing is left.
    """
    if not parts:
        return ADDRESS_PLACEHOLDER

    pieces = []
    for key in ADDRESS_PARTS:
        value = parts.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            pieces.append(value)

    return ", ".join(pieces) if pieces else ADDRESS_PLACEHOLDER
