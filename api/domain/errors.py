# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Application exceptions.

Every failure the confirmation workflow can surface derives from
CustomException so the HTTP layer can render it without knowing the step
that raised it.
"""


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Exception for validation errors."""

    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class AuthenticationException(CustomException):
    """Exception for authentication errors."""

    def __init__(self, message: str):
        super().__init__(message, 401, "authentication-required")


class NotFoundException(CustomException):
    """Exception for resource not found errors."""

    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class PermissionDeniedException(CustomException):
    """Positioning permission was refused; nothing was mutated."""

    def __init__(self, message: str = "Location permission is required to resubmit evidence"):
        super().__init__(message, 422, "location-permission-denied")


class NoCoordinateAvailableException(CustomException):
    """Neither image metadata nor live positioning produced a coordinate."""

    def __init__(self, message: str = "Could not get GPS location. Please enable location services."):
        super().__init__(message, 422, "no-coordinate-available")


class UploadFailureException(CustomException):
    """The evidence store rejected the write; the complaint was not touched."""

    def __init__(self, message: str):
        super().__init__(message, 502, "evidence-upload-failed")


class PersistenceFailureException(CustomException):
    """The complaint row could not be written.

    When raised from a resubmission the uploaded evidence is left
    unreferenced.
    """

    def __init__(self, message: str, orphaned_key: str = None):
        super().__init__(message, 503, "complaint-persistence-failed")
        self.orphaned_key = orphaned_key


class ServiceUnavailableException(CustomException):
    """Exception for service unavailable errors."""

    def __init__(self, message: str):
        super().__init__(message, 503, "service-unavailable")
