# SPDX-License-Identifier: Apache-2.0

"""
Citizen token verification.

Bearer tokens are RS256 JWTs whose subject is the owning-citizen id. Token
issuance belongs to the identity provider; ``generate_access_token`` exists
for local development and tests.
"""

import os
import uuid
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from opentelemetry import trace
import logging

from models.entities import CitizenContext

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


def generate_key_pair() -> Tuple[str, str]:
    """Generate an RSA key pair as (private PEM, public PEM)."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048
    )

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('utf-8')

    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode('utf-8')

    return private_pem, public_pem


class AuthService:
    """
    RS256 JWT verification for citizen requests.

    Keys come from JWT_PUBLIC_KEY / JWT_PRIVATE_KEY. When neither is set a
    throwaway key pair is generated so development servers can start.
    """

    def __init__(self, private_key: Optional[str] = None, public_key: Optional[str] = None):
        private_key = private_key or os.getenv("JWT_PRIVATE_KEY")
        public_key = public_key or os.getenv("JWT_PUBLIC_KEY")

        if not public_key:
            logger.warning("No JWT_PUBLIC_KEY found, generating development key pair")
            private_key, public_key = generate_key_pair()

        # Keys exported as single-line environment values carry escaped newlines
        self.private_key = private_key.replace('\\n', '\n') if private_key else None
        self.public_key = public_key.replace('\\n', '\n')
        self.algorithm = "RS256"
        self.access_token_expire_minutes = 15

    def generate_access_token(self, citizen_id: str, email: Optional[str] = None,
                              expires_in: Optional[timedelta] = None) -> str:
        """
        Sign an access token for a citizen.

        Raises:
            TokenValidationError: No private key is configured
        """
        if not self.private_key:
            raise TokenValidationError("No private key configured for token signing")

        now = datetime.now(timezone.utc)
        payload = {
            "sub": citizen_id,
            "email": email,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + (expires_in or timedelta(minutes=self.access_token_expire_minutes)),
            "type": "access"
        }
        return jwt.encode(payload, self.private_key, algorithm=self.algorithm)

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate and decode an access token.

        Args:
            token: JWT token string to validate

        Returns:
            Decoded token payload

        Raises:
            TokenValidationError: If token is invalid or expired
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attribute("auth.operation", "validate_token")

            try:
                payload = jwt.decode(
                    token,
                    self.public_key,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["sub", "exp"]}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type", "access") != "access":
                span.set_attribute("auth.validation_result", "invalid")
                raise TokenValidationError("Invalid token type. Expected access")

            span.set_attributes({
                "auth.validation_result": "success",
                "citizen.id": payload["sub"]
            })
            logger.debug("Token validated successfully", extra={"citizen_id": payload["sub"]})
            return payload

    def citizen_from_token(self, token: str) -> CitizenContext:
        """Validated token as a CitizenContext."""
        payload = self.validate_token(token)
        return CitizenContext(
            citizen_id=str(payload["sub"]),
            email=payload.get("email"),
            token_id=payload.get("jti")
        )
