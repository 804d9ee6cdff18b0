"""
Fallback handlers — event types with no dedicated rendering.

Known-but-unimplemented GitLab events get a placeholder; anything else
echoes its type and a truncated JSON dump so the operator can see what
arrived.
"""

import json
import logging
from typing import Any, Dict, List

from ..formatting import project_of, project_prefix, truncate
from ..models import NotificationRecord
from .base import EventHandler, HandlerContext, RecordBuilder

log = logging.getLogger("hookrelay.handlers.generic")

NOT_IMPLEMENTED = "This feature is not yet implemented"


class PlaceholderHandler(EventHandler):
    """Pipeline, build, job and confidential-issue events."""

    @property
    def event_types(self) -> List[str]:
        return ["Pipeline Hook", "Build Hook", "Job Hook", "Confidential Issue Hook"]

    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        log.info(f"Unimplemented event type: {event_type}")
        out = RecordBuilder(ctx).identity_from(payload)
        out.permalink = project_of(payload).get("web_url") or ""
        out.title = f"{project_prefix(payload)}{event_type}"
        out.description = f"**{event_type}** {NOT_IMPLEMENTED}"
        return out.build()


class UnknownEventHandler(EventHandler):
    """Catch-all for unrecognized or missing event types."""

    @property
    def event_types(self) -> List[str]:
        return ["*"]

    def handle(
        self, event_type: str, payload: Any, ctx: HandlerContext
    ) -> NotificationRecord:
        log.info(f"Unrecognized event type: {event_type!r}")
        out = RecordBuilder(ctx)
        out.title = f"Type: {event_type or '(none)'}"
        out.description = NOT_IMPLEMENTED
        out.add_field("Payload", truncate(json.dumps(payload, default=str), ctx.caps.field_value))
        return out.build()
