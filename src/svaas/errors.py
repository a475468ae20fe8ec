"""Error taxonomy of the SDK.

Configuration and validation errors are raised synchronously before any
network I/O. Request errors carry the URL and payload of the failed call.
Signature verification never raises; see ``svaas.httpsig.verifier``.
"""
from __future__ import annotations

from typing import Any


class SVaaSError(Exception):
    """Base class of every error raised by the SDK."""

    def __init__(self, message: str):
        super().__init__(f"[Knot SVaaS SDK] {message}")


class SVaaSConfigError(SVaaSError):
    """Invalid client options or key material."""


class SigningError(SVaaSConfigError):
    """The Authorization header could not be produced; the request is not sent."""

    def __init__(self, reason: Any):
        super().__init__(f"Generating the request signature failed: {reason}")


class SVaaSValidationError(SVaaSError, ValueError):
    """An API method argument is out of range or of the wrong type."""


class SVaaSRequestError(SVaaSError):
    def __init__(self, message: str, url: str, data: Any = None):
        super().__init__(message)
        self.url = url
        self.data = data


__all__ = [
    "SVaaSError",
    "SVaaSConfigError",
    "SigningError",
    "SVaaSValidationError",
    "SVaaSRequestError",
]
