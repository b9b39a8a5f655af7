"""
Response Helper Functions
Utility functions to reduce boilerplate in HTTP response handlers.
"""

import json
from typing import Optional

import azure.functions as func

from shared.models import ErrorResponse

PUSH_AUTH_CHALLENGE = 'Bearer realm="PubSub Push"'


def error_response(
    error_type: str,
    message: str,
    status_code: int,
    headers: Optional[dict] = None
) -> func.HttpResponse:
    """
    Create a standardized error response.

    Args:
        error_type: Error category (e.g., "Unauthorized", "InvalidCSRF")
        message: Human-readable error message
        status_code: HTTP status code
        headers: Optional extra response headers

    Returns:
        func.HttpResponse with JSON error payload
    """
    error = ErrorResponse(error=error_type, message=message)
    return func.HttpResponse(
        json.dumps(error.model_dump(exclude_none=True)),
        status_code=status_code,
        headers=headers,
        mimetype="application/json"
    )


def ok() -> func.HttpResponse:
    """200 with an empty body"""
    return func.HttpResponse(status_code=200)


def redirect(location: str) -> func.HttpResponse:
    """302 Found to location"""
    return func.HttpResponse(status_code=302, headers={"Location": location})


def html_response(body: str, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(body, status_code=status_code, mimetype="text/html", charset="utf-8")


# Common error response shortcuts
def unauthorized(message: str = "Unauthorized") -> func.HttpResponse:
    """401 Unauthorized response with a bearer challenge"""
    return error_response(
        "Unauthorized",
        message,
        401,
        headers={"WWW-Authenticate": PUSH_AUTH_CHALLENGE}
    )


def invalid_csrf(message: str = "Invalid or expired CSRF token") -> func.HttpResponse:
    """401 response for a rejected install submission"""
    return error_response("InvalidCSRF", message, 401)


def forbidden(message: str = "Forbidden") -> func.HttpResponse:
    """403 Forbidden response"""
    return error_response("Forbidden", message, 403)


def bad_request(message: str) -> func.HttpResponse:
    """400 Bad Request response"""
    return error_response("BadRequest", message, 400)


def service_unavailable(message: str = "Service temporarily unavailable") -> func.HttpResponse:
    """503 Service Unavailable response"""
    return error_response("ServiceUnavailable", message, 503)
