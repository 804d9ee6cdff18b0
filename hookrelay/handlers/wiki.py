"""
Wiki Page Hook handler.
"""

from typing import Any, Dict, List

from ..formatting import project_prefix, truncate
from ..models import NotificationRecord
from .base import EventHandler, HandlerContext, RecordBuilder, require


class WikiPageHandler(EventHandler):

    @property
    def event_types(self) -> List[str]:
        return ["Wiki Page Hook"]

    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        attrs = require(payload, "object_attributes", event_type)

        out = RecordBuilder(ctx).identity_from(payload)
        out.permalink = attrs.get("url") or ""
        out.description = truncate(attrs.get("message"), ctx.caps.snippet)
        out.title = f"{project_prefix(payload)}Wiki Action: {attrs.get('action') or 'unknown'}"
        out.add_field("Title", attrs.get("title", ""))
        out.add_field("Content", truncate(attrs.get("content"), ctx.caps.snippet))
        return out.build()
