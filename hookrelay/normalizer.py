"""
Event Normalizer — Convert (event type, payload) into a NotificationRecord.

``normalize`` never raises: a handler failure becomes an error-flavoured
record so the operator still hears about the event in chat.
"""

import json
import logging
from typing import Any, Optional, Union

from .errors import NormalizeError, RelayError
from .formatting import truncate
from .handlers import HandlerContext, RecordBuilder, get_handler
from .handlers.generic import UnknownEventHandler
from .models import NotificationRecord

log = logging.getLogger("hookrelay.normalizer")

RawBody = Union[bytes, str, None]


def _raw_text(raw: RawBody) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


class EventNormalizer:
    """Map GitLab webhook payloads to chat records."""

    def __init__(self, ctx: Optional[HandlerContext] = None):
        self.ctx = ctx or HandlerContext()

    def normalize(
        self, event_type: Optional[str], payload: Any, raw: RawBody = None
    ) -> NotificationRecord:
        event_type = event_type or ""
        handler = get_handler(event_type)
        try:
            if not isinstance(payload, dict) and not isinstance(handler, UnknownEventHandler):
                raise NormalizeError(
                    f"expected a JSON object, got {type(payload).__name__}",
                    context=event_type,
                )
            return handler.handle(event_type, payload, self.ctx)
        except Exception as exc:
            log.error(f"Normalization failed for {event_type!r}: {exc}", exc_info=True)
            if raw is None:
                raw = json.dumps(payload, default=str)
            return self.error_record(event_type, exc, raw)

    def error_record(
        self,
        event_type: str,
        error: Union[BaseException, str],
        raw: RawBody = None,
        context: str = "Error Reading HTTP Request Data",
    ) -> NotificationRecord:
        """Record describing a failure to turn a request into a notification."""
        if isinstance(error, RelayError):
            message = error.message
        else:
            message = str(error) or type(error).__name__
        out = RecordBuilder(self.ctx, self.ctx.color("error"))
        out.title = f"{context}: {event_type or '(none)'}"
        out.description = message
        text = _raw_text(raw)
        if text:
            out.add_field("Raw Body", truncate(text, self.ctx.caps.snippet))
        return out.build()

    def parse_error_record(
        self,
        event_type: str,
        content_type: str,
        error: BaseException,
        raw: RawBody,
    ) -> NotificationRecord:
        """Record for a validated request whose body is not JSON."""
        declared = content_type or "no content type"
        message = f"Request declared {declared} but the body is not valid JSON: {error}"
        return self.error_record(
            event_type, message, raw, context="Error Parsing HTTP Request Data"
        )

    def status_record(self, title: str, description: str = "") -> NotificationRecord:
        """Operator-facing status message, e.g. after a recovery."""
        out = RecordBuilder(self.ctx, self.ctx.color("status"))
        out.title = title
        out.description = description
        return out.build()
