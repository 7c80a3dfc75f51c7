"""
Exception hierarchy for summary generation.

Every failure that reaches the caller is a SummaryError subclass. Malformed
stream frames never surface here; they are dropped by the decoder.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class SummaryError(Exception):
    """Base class for all summary generation failures."""


class InvalidRequest(SummaryError):
    """The request or provider configuration cannot be acted upon."""


class ProviderErrorKind(Enum):
    """Classification of backend failures."""
    AUTH_FAILED = "auth_failed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_UNAVAILABLE = "server_unavailable"
    TIMEOUT = "timeout"
    CONNECT_FAILED = "connect_failed"
    TRANSPORT = "transport"
    GENERIC = "generic"

    def __str__(self) -> str:
        return self.value


class ProviderError(SummaryError):
    """
    An LLM backend rejected the request or could not be reached.

    Attributes:
        kind: Failure classification
        status_code: HTTP status, when the backend answered
        body: Response body, when one was read
        hint: Extra guidance for the user
    """

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        self.body = body
        self.hint = hint
        text = message
        if hint:
            text = f"{message} ({hint})"
        super().__init__(text)


class DecodeError(SummaryError):
    """A non-streaming response body could not be decoded."""


class IoError(SummaryError):
    """The summary could not be persisted."""


class DeliveryError(SummaryError):
    """A progress sink did not accept a delta in time."""
