# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Renders workflow exceptions, HTTP errors and unexpected failures as RFC 7807
problem documents.
"""

from flask import Flask, request, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, Tuple
from opentelemetry import trace
import logging

from domain.errors import (
    CustomException,
    ValidationException,
    AuthenticationException,
    NotFoundException,
    PersistenceFailureException,
)
from services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PROBLEM_TITLES = {
    "bad-request": "Bad Request",
    "authentication-required": "Authentication Required",
    "resource-not-found": "Resource Not Found",
    "method-not-allowed": "Method Not Allowed",
    "payload-too-large": "Payload Too Large",
    "location-permission-denied": "Location Permission Denied",
    "no-coordinate-available": "No Coordinate Available",
    "evidence-upload-failed": "Evidence Upload Failed",
    "complaint-persistence-failed": "Complaint Persistence Failed",
    "service-unavailable": "Service Unavailable",
}

HTTP_ERROR_TYPES = {
    400: "bad-request",
    401: "authentication-required",
    404: "resource-not-found",
    405: "method-not-allowed",
    413: "payload-too-large",
    503: "service-unavailable",
}


def _problem_title(error_type: str) -> str:
    return PROBLEM_TITLES.get(error_type, error_type.replace('-', ' ').title())


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(CustomException)
        def handle_custom_exception(error: CustomException):
            response, status = self.handle_custom_exception(error)
            return jsonify(response), status

        @self.app.errorhandler(ValidationError)
        def handle_model_validation(error: ValidationError):
            response = self.hal_formatter.format_validation_error(
                "Request validation failed",
                request.path,
                [
                    {"field": ".".join(str(part) for part in item["loc"]), "message": item["msg"]}
                    for item in error.errors()
                ]
            )
            return jsonify(response), 400

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            response, status = self.handle_http_error(error)
            return jsonify(response), status

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            response, status = self.handle_unexpected_error(error)
            return jsonify(response), status

    def handle_custom_exception(self, error: CustomException) -> Tuple[Dict[str, Any], int]:
        """
        Render a workflow exception.

        Args:
            error: Exception raised by the workflow or a collaborator wrapper

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            log = logger.error if error.status_code >= 500 else logger.warning
            log(
                f"Custom exception: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            if isinstance(error, ValidationException):
                response = self.hal_formatter.format_validation_error(
                    error.message,
                    request.path,
                    error.validation_errors
                )
            elif isinstance(error, AuthenticationException):
                response = self.hal_formatter.format_authentication_error(error.message, request.path)
            elif isinstance(error, NotFoundException):
                response = self.hal_formatter.format_not_found_error(error.message, request.path)
            else:
                extensions = None
                if isinstance(error, PersistenceFailureException) and error.orphaned_key:
                    extensions = {"orphanedEvidenceKey": error.orphaned_key}
                response = self.hal_formatter.builder.build_error_response(
                    error.error_type,
                    _problem_title(error.error_type),
                    error.status_code,
                    error.message,
                    request.path,
                    extensions=extensions
                )

            return response, error.status_code

    def handle_http_error(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """Render werkzeug HTTP errors (routing, method, size limits)."""
        status = error.code or 500
        error_type = HTTP_ERROR_TYPES.get(status, "http-error")
        title = _problem_title(error_type)
        detail = str(error.description) if error.description else title

        logger.warning(
            f"Client error: {title}",
            extra={
                "error_type": error_type,
                "status_code": status,
                "path": request.path,
                "method": request.method
            }
        )

        response = self.hal_formatter.builder.build_error_response(
            error_type,
            title,
            status,
            detail,
            request.path
        )
        return response, status

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=error
            )

            # Don't expose internal error details
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            return self.hal_formatter.format_server_error(detail, request.path), 500


def register_custom_error_handlers(app: Flask, hal_formatter: HalFormatter) -> ErrorHandlerMiddleware:
    """
    Register problem-document error handlers on an application.

    Args:
        app: Flask application
        hal_formatter: HAL formatter instance
    """
    return ErrorHandlerMiddleware(app, hal_formatter)
