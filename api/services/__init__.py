# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - External integrations and side effects.
"""

from .mongodb import MongoDBService, get_mongodb_service, close_mongodb_connection
from .complaint_store import ComplaintStore
from .storage import EvidenceStorageService
from .geo import GeoResolver, ReportedLocationProvider
from .geocoding import NominatimGeocoder, GeocoderConfig
from .notifier import ChangeNotifier, ComplaintSubscription
from .lifecycle import LifecycleEngine

__all__ = [
    "MongoDBService",
    "get_mongodb_service",
    "close_mongodb_connection",
    "ComplaintStore",
    "EvidenceStorageService",
    "GeoResolver",
    "ReportedLocationProvider",
    "NominatimGeocoder",
    "GeocoderConfig",
    "ChangeNotifier",
    "ComplaintSubscription",
    "LifecycleEngine"
]
