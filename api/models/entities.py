# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the complaint confirmation workflow.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, field_validator
from .base import BaseEntity, ensure_utc
from .enums import ComplaintStatus, ChangeOperation, CoordinateSource


class Complaint(BaseEntity):
    """A citizen complaint as held in the complaints collection."""

    title: str = Field("", max_length=200, description="Complaint title")
    description: Optional[str] = Field(None, max_length=3000, description="Complaint description")
    category_id: Optional[str] = Field(None, description="Category identifier")
    status: ComplaintStatus = Field(default=ComplaintStatus.PENDING, description="Workflow status")
    submitted_date: Optional[datetime] = Field(None, description="Citizen acknowledgment marker")
    location: Optional[str] = Field(None, description="Free-text address")
    latitude: Optional[float] = Field(None, description="Latitude in decimal degrees")
    longitude: Optional[float] = Field(None, description="Longitude in decimal degrees")
    photo_url: Optional[str] = Field(None, description="Public evidence reference")
    owner_id: str = Field(..., description="Owning citizen identifier")

    @field_validator('category_id', mode='before')
    @classmethod
    def coerce_category(cls, v):
        """Categories are stored as numbers by some clients."""
        return None if v is None else str(v)

    @field_validator('created_at', 'updated_at', 'submitted_date', mode='after')
    @classmethod
    def attach_timezone(cls, v):
        """Compare all timestamps as UTC."""
        return ensure_utc(v)


class Coordinate(BaseModel):
    """Signed decimal-degree position. Range is not enforced."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class GpsMetadata(BaseModel):
    """Well-formed GPS tags lifted from image metadata."""

    model_config = ConfigDict(frozen=True)

    latitude: Tuple[float, float, float]
    latitude_ref: Optional[str] = Field(None, pattern=r'^[NS]$')
    longitude: Tuple[float, float, float]
    longitude_ref: Optional[str] = Field(None, pattern=r'^[EW]$')


class ResolvedLocation(BaseModel):
    """Coordinate plus best-effort address for one evidence attempt."""

    coordinate: Coordinate
    address: str
    source: CoordinateSource


class EvidenceCandidate(BaseModel):
    """Freshly captured evidence for a single resubmission attempt."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: bytes = Field(..., repr=False, description="Raw image bytes")
    content_type: str = Field(default="image/jpeg", description="MIME type")
    filename: Optional[str] = Field(None, description="Client-side file name")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Embedded EXIF tags, if any")

    @property
    def extension(self) -> str:
        """File extension used for the storage key."""
        if self.filename and '.' in self.filename:
            ext = self.filename.rsplit('.', 1)[-1].lower()
            if ext.isalnum():
                return ext
        if self.content_type.startswith('image/'):
            return self.content_type.split('/', 1)[1].split(';')[0] or 'jpg'
        return 'jpg'


class ComplaintChange(BaseModel):
    """One message from the complaints change feed."""

    operation: ChangeOperation
    complaint_id: str
    owner_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict, description="Raw event body, informational only")


class Resubmission(BaseModel):
    """Outcome of a successful Reject."""

    complaint: Complaint
    location: ResolvedLocation
    evidence_key: str
    preserved: Dict[str, Any] = Field(default_factory=dict, description="Title/description/category read before resubmission")


class CitizenContext(BaseModel):
    """Authenticated citizen extracted from the bearer token."""

    citizen_id: str = Field(..., description="Owning-citizen identifier (token subject)")
    email: Optional[str] = Field(None, description="Citizen email")
    token_id: Optional[str] = Field(None, description="JWT ID")
