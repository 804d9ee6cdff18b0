"""
Note Hook handler — comments on commits, merge requests, issues and snippets.

``noteable_type`` has appeared both as ``merge_request`` and ``MergeRequest``
across GitLab versions, so it is matched with case and underscores folded.
"""

import logging
from typing import Any, Dict, List, Mapping

from ..formatting import as_dict, project_prefix, short_sha, truncate
from ..models import NotificationRecord
from .base import EventHandler, HandlerContext, RecordBuilder, require
from .merge_requests import branch_link

log = logging.getLogger("hookrelay.handlers.notes")


def _fold(noteable_type: Any) -> str:
    return str(noteable_type or "").replace("_", "").lower()


class NoteHandler(EventHandler):

    @property
    def event_types(self) -> List[str]:
        return ["Note Hook"]

    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        attrs = require(payload, "object_attributes", event_type)

        out = RecordBuilder(ctx).identity_from(payload)
        out.permalink = attrs.get("url") or ""
        out.description = f"New comment by {out.username or 'someone'}"
        out.title = f"{project_prefix(payload)}New Comment"
        out.add_field("Comment", truncate(attrs.get("note"), ctx.caps.snippet))

        kind = _fold(attrs.get("noteable_type"))
        target = {
            "commit": self._on_commit,
            "mergerequest": self._on_merge_request,
            "issue": self._on_issue,
            "snippet": self._on_snippet,
        }.get(kind)

        if target is None:
            log.info(f"Unhandled noteable_type for {event_type}: {attrs.get('noteable_type')!r}")
        else:
            target(payload, out, event_type)
        return out.build()

    def _on_commit(self, payload: Mapping[str, Any], out: RecordBuilder, event_type: str) -> None:
        commit = require(payload, "commit", event_type)
        out.color = out.ctx.color("commit")
        out.title = f"{project_prefix(payload)}New Comment on Commit {short_sha(commit.get('id'))}"
        out.add_field("Commit Message", truncate(commit.get("message"), out.ctx.caps.snippet))
        out.add_field("Commit Author", as_dict(commit.get("author")).get("name", ""), inline=True)
        out.add_field("Commit Timestamp", commit.get("timestamp", ""), inline=True)

    def _on_merge_request(self, payload: Mapping[str, Any], out: RecordBuilder, event_type: str) -> None:
        mr = require(payload, "merge_request", event_type)
        out.color = out.ctx.color("merge_request_comment")
        out.title = f"{project_prefix(payload)}New Comment on Merge Request #{mr.get('iid', '?')}"
        out.add_field("Merge Request", mr.get("title", ""))
        source = branch_link(as_dict(mr.get("source")), mr.get("source_branch") or "?")
        target = branch_link(as_dict(mr.get("target")), mr.get("target_branch") or "?")
        out.add_field("Source --> Target", f"Merge {source} into {target}")
        assignee = as_dict(mr.get("assignee"))
        if assignee.get("username"):
            out.add_field("Assigned To", assignee["username"])

    def _on_issue(self, payload: Mapping[str, Any], out: RecordBuilder, event_type: str) -> None:
        issue = require(payload, "issue", event_type)
        out.color = out.ctx.color("issue_comment")
        out.title = (
            f"{project_prefix(payload)}New Comment on Issue "
            f"#{issue.get('iid', '?')} {issue.get('title') or ''}"
        ).rstrip()

    def _on_snippet(self, payload: Mapping[str, Any], out: RecordBuilder, event_type: str) -> None:
        snippet = require(payload, "snippet", event_type)
        out.title = f"{project_prefix(payload)}New Comment on Code Snippet"
        # Content is cut before fencing so the closing fence survives
        content = truncate(snippet.get("content"), out.ctx.caps.snippet)
        out.add_field("Snippet", f"Title: {snippet.get('title') or ''}\n```\n{content}\n```")
