"""
Request Ingestor — streaming validation of inbound webhook requests.

    START -> AWAITING_FIRST_CHUNK -> VALID | INVALID -> COMPLETE

Headers are checked exactly once, when the first body chunk arrives. An
invalid request keeps INVALID and ignores whatever else is streamed; the
HTTP layer answers 400 and stops reading. A valid request buffers every
chunk (the first included) until the stream ends.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from . import config as cfg
from .errors import ErrorKind, RelayError
from .models import IncomingRequest, IngestState
from .security import verify_request_token

log = logging.getLogger("hookrelay.ingest")


class RequestIngestor:

    def __init__(
        self,
        headers: Mapping[str, str],
        method: str,
        url: str,
        secret: str = cfg.WEBHOOK_TOKEN,
        auth_header: str = cfg.AUTH_HEADER,
        event_header: str = cfg.EVENT_HEADER,
    ):
        self.request = IncomingRequest(
            headers={k.lower(): v for k, v in headers.items()},
            method=method,
            url=url,
        )
        self.secret = secret
        self.auth_header = auth_header.lower()
        self.event_header = event_header.lower()
        self.error: Optional[RelayError] = None
        self.request.state = IngestState.AWAITING_FIRST_CHUNK

    @property
    def state(self) -> IngestState:
        return self.request.state

    @property
    def event_type(self) -> str:
        return self.request.event_type

    @property
    def body(self) -> bytes:
        return bytes(self.request.body)

    def feed(self, chunk: bytes) -> IngestState:
        """Process one body chunk; returns the resulting state."""
        state = self.request.state
        if state == IngestState.INVALID:
            return state
        if state == IngestState.VALID:
            self.request.body.extend(chunk)
            return state
        if state != IngestState.AWAITING_FIRST_CHUNK:
            return state

        verdict = verify_request_token(self.request.headers, self.secret, self.auth_header)
        if verdict is None:
            return self._reject(f"missing {self.auth_header} header")
        if not verdict:
            return self._reject("invalid token")

        self.request.state = IngestState.VALID
        self.request.event_type = self.request.headers.get(self.event_header, "")
        self.request.body.extend(chunk)
        log.info(f"Accepted {self.request.method} {self.request.url} event={self.request.event_type!r}")
        return self.request.state

    def finish(self) -> IngestState:
        """End of stream. Valid requests become COMPLETE."""
        if self.request.state == IngestState.AWAITING_FIRST_CHUNK:
            self.feed(b"")
        if self.request.state == IngestState.VALID:
            self.request.state = IngestState.COMPLETE
        return self.request.state

    def _reject(self, reason: str) -> IngestState:
        self.request.state = IngestState.INVALID
        self.request.rejection_reason = reason
        self.error = RelayError(ErrorKind.AUTH_FAILURE, reason, context=self.request.url)
        log.warning(f"Rejected {self.request.method} {self.request.url}: {reason}")
        return self.request.state

    def diagnostic(self) -> Dict[str, Any]:
        """Echo returned to the caller on both acceptance and rejection."""
        headers = dict(self.request.headers)
        if self.auth_header in headers:
            headers[self.auth_header] = "***"
        return {
            "headers": headers,
            "method": self.request.method,
            "url": self.request.url,
            "body": "",
        }


def parse_json_body(body: bytes) -> Any:
    """Decode a completed body; raises RelayError(PARSE_FAILURE)."""
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RelayError(ErrorKind.PARSE_FAILURE, str(exc), context="request body") from exc
