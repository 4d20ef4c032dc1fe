from __future__ import annotations


class CrmError(RuntimeError):
    status_code = 500
    public_message = "Request failed."


class InvalidCredentials(CrmError):
    status_code = 401
    public_message = "Invalid credentials."


class DuplicateUsername(CrmError):
    status_code = 409
    public_message = "Username already exists."


class Unauthorized(CrmError):
    status_code = 403
    public_message = "Not allowed."


class NotFound(CrmError):
    status_code = 404
    public_message = "Not found."


class ValidationError(CrmError):
    status_code = 400
    public_message = "Invalid request."


class ServiceUnavailable(CrmError):
    """Generation backend failed; callers treat it as opaque and do not retry."""

    status_code = 502
    public_message = "Generation failed."


class Unauthenticated(ServiceUnavailable):
    """Generation backend rejected or lacks credentials."""
