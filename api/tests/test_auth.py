# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for citizen token verification.
"""

import pytest
import jwt
from datetime import datetime, timedelta, timezone

from services.auth import AuthService, TokenValidationError, generate_key_pair


class TestAuthService:
    """Test AuthService token handling."""

    def test_token_round_trip(self, auth_service):
        token = auth_service.generate_access_token("citizen-1", email="ana@example.com")

        payload = auth_service.validate_token(token)

        assert payload["sub"] == "citizen-1"
        assert payload["email"] == "ana@example.com"
        assert payload["type"] == "access"
        assert payload["jti"]

    def test_citizen_from_token(self, auth_service):
        token = auth_service.generate_access_token("citizen-7")

        citizen = auth_service.citizen_from_token(token)

        assert citizen.citizen_id == "citizen-7"
        assert citizen.email is None
        assert citizen.token_id

    def test_expired_token(self, auth_service):
        token = auth_service.generate_access_token("citizen-1", expires_in=timedelta(seconds=-1))

        with pytest.raises(TokenValidationError, match="expired"):
            auth_service.validate_token(token)

    def test_garbage_token(self, auth_service):
        with pytest.raises(TokenValidationError, match="Invalid token"):
            auth_service.validate_token("not-a-jwt")

    def test_token_signed_by_another_key(self, auth_service):
        other_private, _ = generate_key_pair()
        token = jwt.encode(
            {"sub": "citizen-1", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            other_private,
            algorithm="RS256"
        )

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)

    def test_refresh_token_rejected(self, auth_service):
        token = jwt.encode(
            {"sub": "citizen-1", "exp": datetime.now(timezone.utc) + timedelta(minutes=5), "type": "refresh"},
            auth_service.private_key,
            algorithm="RS256"
        )

        with pytest.raises(TokenValidationError, match="token type"):
            auth_service.validate_token(token)

    def test_subject_required(self, auth_service):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            auth_service.private_key,
            algorithm="RS256"
        )

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)


class TestKeyConfiguration:
    """Test key loading from the environment."""

    def test_escaped_newlines_in_environment(self, monkeypatch):
        private_pem, public_pem = generate_key_pair()
        monkeypatch.setenv("JWT_PRIVATE_KEY", private_pem.replace("\n", "\\n"))
        monkeypatch.setenv("JWT_PUBLIC_KEY", public_pem.replace("\n", "\\n"))

        service = AuthService()

        assert service.public_key == public_pem
        token = service.generate_access_token("citizen-1")
        assert service.validate_token(token)["sub"] == "citizen-1"

    def test_development_key_pair_is_consistent(self, monkeypatch):
        monkeypatch.delenv("JWT_PRIVATE_KEY", raising=False)
        monkeypatch.delenv("JWT_PUBLIC_KEY", raising=False)

        service = AuthService()

        token = service.generate_access_token("citizen-1")
        assert service.validate_token(token)["sub"] == "citizen-1"

    def test_verification_only_service_cannot_sign(self, auth_service):
        service = AuthService(public_key=auth_service.public_key)
        service.private_key = None

        with pytest.raises(TokenValidationError, match="private key"):
            service.generate_access_token("citizen-1")

        token = auth_service.generate_access_token("citizen-1")
        assert service.validate_token(token)["sub"] == "citizen-1"
