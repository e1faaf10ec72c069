"""Exceptions raised by the Odoo client and the analysis services.

Each error carries the HTTP status the API server answers with, so the
server and the CLI can report them without re-classifying.
"""

from __future__ import annotations

from typing import Any


class OdooLensError(Exception):
    """Base class for every error surfaced to a caller."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(OdooLensError):
    """The request was missing data or had the wrong shape."""

    status_code = 400


class ConfigurationError(OdooLensError):
    """A required credential or setting is not configured."""

    status_code = 500


class UpstreamError(OdooLensError):
    """The text-generation service failed or returned nothing."""

    status_code = 500


class SessionExpiredError(OdooLensError):
    """The Odoo session cookie is missing, expired or rejected."""

    status_code = 401


class OdooAPIError(OdooLensError):
    """Odoo answered with an HTTP error or a JSON-RPC error object.

    Attributes:
        details: Raw response body or the JSON-RPC ``error`` payload.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Any = None,
    ) -> None:
        self.details = details
        super().__init__(message, status_code=status_code)
