# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the complaint confirmation service.
"""

# Base models
from .base import BaseEntity, generate_object_id, utcnow

# Enumerations
from .enums import ComplaintStatus, ChangeOperation, CoordinateSource, LocationPermission

# Core entities
from .entities import (
    Complaint,
    Coordinate,
    GpsMetadata,
    ResolvedLocation,
    EvidenceCandidate,
    ComplaintChange,
    Resubmission,
    CitizenContext
)

# Request models
from .requests import RejectComplaintForm

# Response models
from .responses import HalLink

__all__ = [
    # Base
    "BaseEntity",
    "generate_object_id",
    "utcnow",

    # Enums
    "ComplaintStatus",
    "ChangeOperation",
    "CoordinateSource",
    "LocationPermission",

    # Entities
    "Complaint",
    "Coordinate",
    "GpsMetadata",
    "ResolvedLocation",
    "EvidenceCandidate",
    "ComplaintChange",
    "Resubmission",
    "CitizenContext",

    # Requests
    "RejectComplaintForm",

    # Responses
    "HalLink",
]
