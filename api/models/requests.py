# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints with validation.
"""

import json
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from .enums import LocationPermission


class RejectComplaintForm(BaseModel):
    """Form fields sent alongside the evidence image on reject."""

    model_config = ConfigDict(populate_by_name=True)

    metadata: Optional[Dict[str, Any]] = Field(None, description="EXIF tags captured with the image")
    location_permission: LocationPermission = Field(
        default=LocationPermission.DENIED,
        alias="locationPermission",
        description="Foreground positioning permission on the device"
    )
    latitude: Optional[float] = Field(None, description="Current device latitude")
    longitude: Optional[float] = Field(None, description="Current device longitude")

    @field_validator('metadata', mode='before')
    @classmethod
    def parse_metadata(cls, v):
        """Metadata arrives as a JSON string inside multipart forms."""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                raise ValueError('metadata must be a JSON object')
        if not isinstance(v, dict):
            raise ValueError('metadata must be a JSON object')
        return v

    @field_validator('latitude', 'longitude', mode='before')
    @classmethod
    def blank_as_none(cls, v):
        """Empty form fields mean no reading."""
        return None if v == "" else v

    @model_validator(mode='after')
    def validate_position_pair(self):
        """A device position needs both components."""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError('latitude and longitude must be provided together')
        return self
