# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for citizen JWT validation.

Extracts the bearer token, validates it with the AuthService attached to
the application and stores the resulting CitizenContext on ``flask.g``.
"""

import inspect
from functools import wraps
from flask import request, g, current_app
from typing import Optional, Callable
from opentelemetry import trace
import logging

from domain.errors import AuthenticationException
from services.auth import TokenValidationError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


def extract_token_from_request() -> Optional[str]:
    """
    Extract JWT token from request headers.

    Returns:
        JWT token string or None if not found
    """
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    return auth_header[7:].strip() or None


def authenticate_request():
    """
    Validate the request's bearer token and record the citizen on ``g``.

    Raises:
        AuthenticationException: Missing or invalid token
    """
    with tracer.start_as_current_span("auth.middleware.validate_request") as span:
        span.set_attribute("auth.operation", "validate_request")

        token = extract_token_from_request()
        if not token:
            span.set_attribute("auth.result", "missing_token")
            logger.warning("Authentication failed: missing token")
            raise AuthenticationException("Missing authorization token")

        try:
            citizen = current_app.auth_service.citizen_from_token(token)
        except TokenValidationError as e:
            span.set_attribute("auth.result", "invalid_token")
            logger.warning(f"Authentication failed: {str(e)}")
            raise AuthenticationException(str(e))

        g.citizen = citizen
        span.set_attributes({
            "auth.result": "success",
            "citizen.id": citizen.citizen_id
        })
        return citizen


def require_auth(f: Callable) -> Callable:
    """Decorator requiring a valid citizen token; works for sync and async views."""
    if inspect.iscoroutinefunction(f):
        @wraps(f)
        async def decorated_async(*args, **kwargs):
            authenticate_request()
            return await f(*args, **kwargs)
        return decorated_async

    @wraps(f)
    def decorated_function(*args, **kwargs):
        authenticate_request()
        return f(*args, **kwargs)
    return decorated_function
