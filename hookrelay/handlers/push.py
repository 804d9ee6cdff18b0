"""
Push and Tag Push handlers.

Both render the same commit summary in the description; tag pushes add
the previous and current tagged commits as fields.
"""

import logging
from typing import Any, Dict, List, Mapping

from ..formatting import (
    as_dict,
    as_list,
    change_summary,
    first_line,
    md_link,
    project_of,
    project_prefix,
    short_sha,
    strip_ref,
    truncate,
)
from ..models import NotificationRecord
from .base import EventHandler, HandlerContext, RecordBuilder

log = logging.getLogger("hookrelay.handlers.push")

MAX_LISTED_COMMITS = 5
NULL_SHA = "0" * 40


def commit_summary(commits: List[Mapping[str, Any]], ctx: HandlerContext) -> str:
    """Description text for a list of pushed commits."""
    if len(commits) == 1:
        commit = commits[0]
        modified, added, removed = change_summary(commit)
        return (
            f"{commit.get('message') or ''}".rstrip("\n") + "\n"
            f"{modified} changes\n"
            f"{added} additions\n"
            f"{removed} deletions"
        )

    lines = []
    for commit in commits[:MAX_LISTED_COMMITS]:
        modified, added, removed = change_summary(commit)
        changelog = f"{modified} changes; {added} additions; {removed} deletions"
        author = as_dict(commit.get("author")).get("name", "")
        message = truncate(first_line(commit.get("message")), ctx.caps.commit_message)
        link = md_link(short_sha(commit.get("id")), commit.get("url"), changelog)
        lines.append(f"{link} {message} - {author}")
    return "\n".join(lines)


def _commit_title(total: int) -> str:
    return "1 new commit" if total == 1 else f"{total} new commits"


def _commit_link(sha: str, project: Mapping[str, Any]) -> str:
    if not sha or sha == NULL_SHA:
        return "(none)"
    web_url = project.get("web_url")
    url = f"{web_url}/commit/{sha}" if web_url else None
    return md_link(short_sha(sha), url)


class PushHandler(EventHandler):

    @property
    def event_types(self) -> List[str]:
        return ["Push Hook"]

    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        project = project_of(payload)
        commits = [as_dict(c) for c in as_list(payload.get("commits"))]
        total = payload.get("total_commits_count")
        if not isinstance(total, int):
            total = len(commits)

        out = RecordBuilder(ctx, ctx.color("commit")).identity_from(payload)
        out.permalink = project.get("web_url") or ""
        out.title = f"{project_prefix(payload)}{_commit_title(total)}"

        branch = strip_ref(payload.get("ref"))
        if not commits:
            # Branch creation/deletion pushes carry no commits
            ctx.debug_sink(f"{event_type} without commits", payload)
            out.description = f"No new commits pushed to {branch or 'an unknown ref'}"
        else:
            out.description = commit_summary(commits, ctx)

        if branch:
            out.add_field("Branch", branch, inline=True)
        return out.build()


class TagPushHandler(EventHandler):

    @property
    def event_types(self) -> List[str]:
        return ["Tag Push Hook"]

    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        project = project_of(payload)
        commits = [as_dict(c) for c in as_list(payload.get("commits"))]
        tag = strip_ref(payload.get("ref")) or "(unknown tag)"
        after = payload.get("after") or ""
        before = payload.get("before") or ""

        out = RecordBuilder(ctx, ctx.color("release")).identity_from(payload)
        out.permalink = project.get("web_url") or ""
        verb = "removed" if after == NULL_SHA else "pushed"
        out.title = f"{project_prefix(payload)}Tag {verb}: {tag}"

        if commits:
            out.description = commit_summary(commits, ctx)
        else:
            ctx.debug_sink(f"{event_type} without commits", payload)
            out.description = payload.get("message") or ""

        out.add_field("Previous Commit", _commit_link(before, project), inline=True)
        out.add_field("Current Commit", _commit_link(after, project), inline=True)
        return out.build()
