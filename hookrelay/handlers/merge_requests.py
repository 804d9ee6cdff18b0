"""
Merge Request Hook handler.
"""

import logging
from typing import Any, Dict, List, Mapping

from ..formatting import as_dict, md_link, truncate
from ..models import NotificationRecord
from .base import EventHandler, HandlerContext, RecordBuilder, require
from .issues import add_people_fields

log = logging.getLogger("hookrelay.handlers.merge_requests")

_ACTIONS = {
    "open": ("merge_request_opened", "Merge Request Opened"),
    "close": ("merge_request_closed", "Merge Request Closed"),
    "merge": ("merge_request_closed", "Merge Request Merged"),
}


def branch_link(project: Mapping[str, Any], branch: str) -> str:
    """``[group/repo: branch](web_url)``"""
    name = project.get("path_with_namespace") or project.get("name") or "?"
    return md_link(f"{name}: {branch}", project.get("web_url"))


class MergeRequestHandler(EventHandler):

    @property
    def event_types(self) -> List[str]:
        return ["Merge Request Hook"]

    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        attrs = require(payload, "object_attributes", event_type)
        source = as_dict(attrs.get("source"))
        target = as_dict(attrs.get("target")) or as_dict(payload.get("project"))
        action = attrs.get("action") or ""

        out = RecordBuilder(ctx).identity_from(payload)
        out.permalink = attrs.get("url") or ""
        out.description = truncate(attrs.get("description"), ctx.caps.snippet)

        namespace = target.get("path_with_namespace")
        prefix = f"[{namespace}] " if namespace else ""
        ref = f"#{attrs.get('iid', '?')} {attrs.get('title') or ''}".rstrip()
        if action in _ACTIONS:
            color, verb = _ACTIONS[action]
            out.color = ctx.color(color)
            out.title = f"{prefix}{verb}: {ref}"
        else:
            out.color = ctx.color("merge_request_comment")
            out.title = f"{prefix}Merge Request Updated: {ref}"
            log.info(f"Unhandled action for {event_type}: {action!r}")

        out.add_field("Merge From", branch_link(source, attrs.get("source_branch") or "?"), inline=True)
        out.add_field("Merge Into", branch_link(target, attrs.get("target_branch") or "?"), inline=True)
        add_people_fields(out, payload, attrs)
        return out.build()
