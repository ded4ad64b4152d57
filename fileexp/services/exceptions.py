# fileexp/services/exceptions.py
"""
Shared exception types across translation backends.

Providers raise these; fileexp.services.providers.resolve_outcome() turns them
into a ProviderOutcome so the scheduler never looks at raw error shapes.
"""

from typing import Optional


class FileExpError(Exception):
    """Base class for all FileExp errors."""

    pass


class ValidationError(FileExpError):
    """A required request field is missing or has the wrong type."""

    pass


class CertificateError(FileExpError):
    """The gateway could not read or load its TLS key material."""

    pass


class TranslationProviderError(FileExpError):
    """Base class for failures reported by a translation provider."""

    pass


class NetworkError(TranslationProviderError):
    """Transport or connection failure."""

    pass


class HttpError(TranslationProviderError):
    """Non-2xx response. Keeps the upstream status and raw body for diagnostics."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class RateLimitedError(HttpError):
    """HTTP 429. The only condition that is retried automatically."""

    def __init__(self, message: str = "Rate limited (HTTP 429)", body: Optional[str] = None):
        super().__init__(message, status=429, body=body)


class ParseError(TranslationProviderError):
    """Response body was not valid structured data."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body
