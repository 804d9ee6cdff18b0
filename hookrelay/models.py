"""
Relay Data Models

Dataclasses shared across ingestion, normalization and delivery.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from . import config as cfg


class ConnectionState(str, Enum):
    """Status of the chat connection as reported by the client."""
    CONNECTING = "connecting"
    READY = "ready"
    RECONNECTING = "reconnecting"
    DISCONNECTED = "disconnected"
    DESTROYED = "destroyed"


class IngestState(str, Enum):
    """Per-request validation state."""
    START = "start"
    AWAITING_FIRST_CHUNK = "awaiting_first_chunk"
    VALID = "valid"
    INVALID = "invalid"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Caps:
    """Maximum lengths applied to every string in a NotificationRecord."""
    title: int = cfg.TITLE_CAP
    description: int = cfg.DESCRIPTION_CAP
    field_name: int = cfg.FIELD_NAME_CAP
    field_value: int = cfg.FIELD_VALUE_CAP
    snippet: int = cfg.SNIPPET_CAP
    commit_message: int = cfg.COMMIT_MESSAGE_CAP
    author: int = cfg.AUTHOR_CAP
    footer: int = cfg.FOOTER_CAP
    url: int = cfg.URL_CAP


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True)
class EmbedFooter:
    text: str = ""
    icon_url: str = ""


@dataclass(frozen=True)
class NotificationRecord:
    """
    Canonical chat-message projection of one webhook event.

    Built only through RecordBuilder, which truncates every string to its
    cap; immutable afterwards.
    """
    color: int
    title: str = ""
    username: str = ""
    avatar_url: str = ""
    permalink: str = ""
    description: str = ""
    fields: Tuple[EmbedField, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    footer: EmbedFooter = field(default_factory=EmbedFooter)

    def char_count(self) -> int:
        """Characters this record adds toward the per-message embed budget.

        Counts the text parts ``to_embed`` emits: title, description, field
        names and values, author name and footer text.
        """
        total = len(self.title) + len(self.description) + len(self.username)
        total += sum(len(f.name) + len(f.value) for f in self.fields)
        return total + len(self.footer.text)

    def to_embed(self) -> Dict[str, Any]:
        """Render as a chat embed object."""
        embed: Dict[str, Any] = {
            "color": self.color,
            "title": self.title,
            "description": self.description,
            "fields": [
                {"name": f.name, "value": f.value, "inline": f.inline}
                for f in self.fields
            ],
            "timestamp": self.timestamp.isoformat(),
        }
        if self.username or self.avatar_url:
            author: Dict[str, str] = {"name": self.username}
            if self.avatar_url:
                author["icon_url"] = self.avatar_url
            embed["author"] = author
        if self.permalink:
            embed["url"] = self.permalink
        if self.footer.text or self.footer.icon_url:
            footer: Dict[str, str] = {"text": self.footer.text}
            if self.footer.icon_url:
                footer["icon_url"] = self.footer.icon_url
            embed["footer"] = footer
        return embed


@dataclass
class LinkState:
    """
    Flags shared by the dispatcher, the monitor and operator commands.

    recovery_pending is set when a dropped connection was detected and a
    reconnect issued; cleared after the post-recovery replay. maintenance
    is set while an operator-requested disconnect is in effect.
    """
    recovery_pending: bool = False
    maintenance: bool = False


@dataclass
class IncomingRequest:
    """One inbound HTTP POST while it is being read."""
    headers: Dict[str, str]
    method: str
    url: str
    event_type: str = ""
    body: bytearray = field(default_factory=bytearray)
    state: IngestState = IngestState.START
    rejection_reason: Optional[str] = None

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")
