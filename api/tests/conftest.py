# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import timedelta
from bson import ObjectId

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['MONGODB_DATABASE'] = 'complaints_test'
os.environ['PUBLIC_BASE_URL'] = 'https://api.example.com'

from fakes import NOW, FakeClock, FakeGeocoder, FakeUploader, InMemoryComplaintStore
from services.geo import GeoResolver


@pytest.fixture
def clock():
    """Clock fixed at NOW."""
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryComplaintStore(clock)


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def geo_resolver(geocoder):
    return GeoResolver(geocoder)


@pytest.fixture
def engine(store, uploader, geo_resolver, clock):
    from services.lifecycle import LifecycleEngine
    return LifecycleEngine(store, uploader, geo_resolver, clock=clock)


@pytest.fixture
def pending_complaint(store, clock):
    """Complaint verified by the administration a day ago, acknowledged two days ago."""
    return store.insert(
        status="verified",
        updatedAt=clock() - timedelta(days=1),
        submittedDate=clock() - timedelta(days=2),
        photoUrl="https://api.example.com/api/evidence/complaints/old.jpg",
    )


@pytest.fixture
def sample_complaint_document():
    """Raw complaint document as stored in MongoDB."""
    return {
        "_id": ObjectId(),
        "title": "Broken street light",
        "description": "Light out for a week",
        "categoryId": 3,
        "status": "resolved",
        "ownerId": "citizen-1",
        "submittedDate": NOW - timedelta(days=3),
        "createdAt": NOW - timedelta(days=20),
        "updatedAt": NOW - timedelta(days=1),
        "location": "Main Street, Springfield",
        "latitude": 39.78,
        "longitude": -89.65,
        "photoUrl": "https://api.example.com/api/evidence/complaints/x/1.jpg",
    }


@pytest.fixture(scope="session")
def auth_service():
    """Auth service with a throwaway key pair shared by the whole run."""
    from services.auth import AuthService, generate_key_pair
    private_key, public_key = generate_key_pair()
    return AuthService(private_key=private_key, public_key=public_key)
