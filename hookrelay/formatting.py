"""
Text helpers for building embeds from GitLab payloads.

Payload values are loosely typed, so every helper accepts whatever the
JSON held and falls back to "" rather than raising.
"""

from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urljoin

ELLIPSIS = "..."


def as_text(value: Any) -> str:
    """Payload value as a string; None becomes ""."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def truncate(value: Any, cap: int) -> str:
    """Cut ``value`` to at most ``cap`` characters.

    Longer strings keep ``cap - 3`` characters plus an ellipsis; None and
    empty values become "". Idempotent for ``cap > 3``.
    """
    text = as_text(value)
    if len(text) <= cap:
        return text
    if cap <= len(ELLIPSIS):
        return text[:max(cap, 0)]
    return text[: cap - len(ELLIPSIS)] + ELLIPSIS


def first_line(text: Any) -> str:
    text = as_text(text).strip()
    return text.splitlines()[0] if text else ""


def short_sha(sha: Any) -> str:
    return as_text(sha)[:8]


def md_link(label: str, url: Any, tooltip: Optional[str] = None) -> str:
    """Markdown link, or the bare label when there is no URL."""
    if not url or not isinstance(url, str):
        return label
    if tooltip:
        return f'[{label}]({url} "{tooltip}")'
    return f"[{label}]({url})"


def strip_ref(ref: Any) -> str:
    """``refs/heads/main`` -> ``main``, ``refs/tags/v1`` -> ``v1``."""
    ref = as_text(ref)
    if not ref:
        return ""
    for prefix in ("refs/heads/", "refs/tags/"):
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


def resolve_url(url: Any, base_url: str) -> str:
    """Resolve root-relative paths against ``base_url``; absolute URLs pass through.

    Anything that is not a string is not a URL and becomes "".
    """
    if not url or not isinstance(url, str):
        return ""
    if url.startswith("/") and not url.startswith("//"):
        return urljoin(base_url.rstrip("/") + "/", url.lstrip("/"))
    return url


def as_dict(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def project_of(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """The project object; older payloads carry ``repository`` instead."""
    project = as_dict(payload.get("project"))
    if project:
        return project
    return as_dict(payload.get("repository"))


def project_prefix(payload: Mapping[str, Any]) -> str:
    project = project_of(payload)
    name = project.get("path_with_namespace") or project.get("name")
    return f"[{name}] " if name else ""


def user_identity(payload: Mapping[str, Any], base_url: str) -> Tuple[str, str]:
    """(username, avatar_url) for the acting user.

    Issue/note/MR events nest a ``user`` object; push events use flat
    ``user_username``/``user_name``/``user_avatar`` fields.
    """
    user = as_dict(payload.get("user"))
    username = (
        user.get("username")
        or user.get("name")
        or payload.get("user_username")
        or payload.get("user_name")
        or ""
    )
    avatar = user.get("avatar_url") or payload.get("user_avatar") or ""
    return str(username), resolve_url(avatar, base_url)


def change_summary(commit: Mapping[str, Any]) -> Tuple[int, int, int]:
    """(modified, added, removed) counts for a commit."""
    return (
        len(as_list(commit.get("modified"))),
        len(as_list(commit.get("added"))),
        len(as_list(commit.get("removed"))),
    )
