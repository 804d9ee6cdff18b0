"""
Relay error taxonomy.

One exception type with a closed set of kinds. Each kind is handled at a
fixed place in the pipeline:

    AUTH_FAILURE       request-level, answered with HTTP 400 by the ingestor
    PARSE_FAILURE      body is not JSON, becomes a parse-error record
    NORMALIZE_FAILURE  payload shape broke a handler, becomes an error record
    DELIVERY_FAILURE   chat platform refused the send, goes to the reporter
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    AUTH_FAILURE = "auth_failure"
    PARSE_FAILURE = "parse_failure"
    NORMALIZE_FAILURE = "normalize_failure"
    DELIVERY_FAILURE = "delivery_failure"


class RelayError(Exception):
    """Error raised inside the relay pipeline."""

    def __init__(self, kind: ErrorKind, message: str, context: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} ({self.context})"
        return self.message


class NormalizeError(RelayError):
    def __init__(self, message: str, context: Optional[str] = None):
        super().__init__(ErrorKind.NORMALIZE_FAILURE, message, context)


class DeliveryError(RelayError):
    def __init__(self, message: str, context: Optional[str] = None):
        super().__init__(ErrorKind.DELIVERY_FAILURE, message, context)
