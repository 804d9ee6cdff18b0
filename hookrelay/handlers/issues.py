"""
Issue Hook handler.
"""

import logging
from typing import Any, Dict, List, Mapping

from ..formatting import as_dict, as_list, project_prefix, truncate
from ..models import NotificationRecord
from .base import EventHandler, HandlerContext, RecordBuilder, require

log = logging.getLogger("hookrelay.handlers.issues")


def assignee_names(payload: Mapping[str, Any], attrs: Mapping[str, Any]) -> List[str]:
    """Usernames of assignees; single-assignee payloads predate the list form."""
    people = as_list(payload.get("assignees"))
    if not people:
        single = as_dict(payload.get("assignee")) or as_dict(attrs.get("assignee"))
        people = [single] if single else []
    return [str(p.get("username") or p.get("name")) for p in map(as_dict, people)
            if p.get("username") or p.get("name")]


def label_names(payload: Mapping[str, Any]) -> List[str]:
    return [str(l.get("title") or l.get("name")) for l in map(as_dict, as_list(payload.get("labels")))
            if l.get("title") or l.get("name")]


def add_people_fields(out: RecordBuilder, payload: Mapping[str, Any], attrs: Mapping[str, Any]) -> None:
    assignees = assignee_names(payload, attrs)
    if assignees:
        out.add_field("Assigned To:", " ".join(assignees))
    labels = label_names(payload)
    if labels:
        out.add_field("Labeled As:", " ".join(labels))


class IssueHandler(EventHandler):

    @property
    def event_types(self) -> List[str]:
        return ["Issue Hook"]

    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        attrs = require(payload, "object_attributes", event_type)
        action = attrs.get("action") or ""

        out = RecordBuilder(ctx).identity_from(payload)
        out.permalink = attrs.get("url") or ""
        out.description = truncate(attrs.get("description"), ctx.caps.snippet)

        ref = f"#{attrs.get('iid', '?')} {attrs.get('title') or ''}".rstrip()
        if action == "open":
            out.color = ctx.color("issue_opened")
            out.title = f"{project_prefix(payload)}Issue Opened: {ref}"
        elif action == "close":
            out.color = ctx.color("issue_closed")
            out.title = f"{project_prefix(payload)}Issue Closed: {ref}"
        else:
            out.color = ctx.color("issue_comment")
            out.title = f"{project_prefix(payload)}Issue Updated: {ref}"
            log.info(f"Unhandled action for {event_type}: {action!r}")

        add_people_fields(out, payload, attrs)
        return out.build()
