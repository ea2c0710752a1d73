# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the complaint confirmation service.
"""

from enum import Enum


class ComplaintStatus(str, Enum):
    """Complaint status tokens as stored in the complaints collection."""
    PENDING = "pending"
    VERIFIED = "verified"
    RESOLVED = "resolved"


class ChangeOperation(str, Enum):
    """Change feed operation kinds."""
    INSERT = "insert"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"


class CoordinateSource(str, Enum):
    """Where a resolved coordinate came from."""
    METADATA = "metadata"
    DEVICE = "device"


class LocationPermission(str, Enum):
    """Foreground positioning permission reported by the device."""
    GRANTED = "granted"
    DENIED = "denied"
