"""
EventHandler ABC — Template for GitLab event-type handlers.

Each handler must:
1. Declare the X-Gitlab-Event values it answers to
2. Pull what it needs out of the payload (required sub-objects via
   ``require``, everything else with fallbacks)
3. Fill a RecordBuilder, which truncates on ``build``
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from .. import config as cfg
from ..errors import NormalizeError
from ..formatting import resolve_url, truncate, user_identity
from ..models import Caps, EmbedField, EmbedFooter, NotificationRecord

log = logging.getLogger("hookrelay.handlers")

DebugSink = Callable[[str, Any], None]


def _no_debug(label: str, data: Any) -> None:
    pass


@dataclass(frozen=True)
class HandlerContext:
    """Rendering settings handed to every handler."""
    caps: Caps = field(default_factory=Caps)
    colors: Mapping[str, int] = field(default_factory=lambda: dict(cfg.COLORS))
    base_url: str = cfg.GITLAB_BASE_URL
    footer_text: str = cfg.FOOTER_TEXT
    footer_icon_url: str = cfg.FOOTER_ICON_URL
    debug_sink: DebugSink = _no_debug

    def color(self, name: str) -> int:
        return self.colors.get(name, self.colors.get("default", 0))


def require(payload: Mapping[str, Any], key: str, event_type: str) -> Mapping[str, Any]:
    """Fetch a sub-object the event cannot be rendered without."""
    value = payload.get(key)
    if not isinstance(value, Mapping):
        raise NormalizeError(f"payload has no '{key}' object", context=event_type)
    return value


class RecordBuilder:
    """Mutable staging area for a NotificationRecord."""

    def __init__(self, ctx: HandlerContext, color: Optional[int] = None):
        self.ctx = ctx
        self.color = ctx.color("default") if color is None else color
        self.title = ""
        self.username = ""
        self.avatar_url = ""
        self.permalink = ""
        self.description = ""
        self.fields: List[EmbedField] = []
        self.timestamp: Optional[datetime] = None

    def identity_from(self, payload: Mapping[str, Any]) -> "RecordBuilder":
        self.username, self.avatar_url = user_identity(payload, self.ctx.base_url)
        return self

    def add_field(self, name: str, value: Any, inline: bool = False) -> "RecordBuilder":
        self.fields.append(EmbedField(name=name, value="" if value is None else str(value), inline=inline))
        return self

    def build(self) -> NotificationRecord:
        caps = self.ctx.caps
        return NotificationRecord(
            color=int(self.color),
            title=truncate(self.title, caps.title),
            username=truncate(self.username, caps.author),
            avatar_url=truncate(self.avatar_url, caps.url),
            permalink=truncate(resolve_url(self.permalink, self.ctx.base_url), caps.url),
            description=truncate(self.description, caps.description),
            fields=tuple(
                EmbedField(
                    name=truncate(f.name, caps.field_name),
                    value=truncate(f.value, caps.field_value),
                    inline=f.inline,
                )
                for f in self.fields
            ),
            timestamp=self.timestamp or datetime.now(timezone.utc),
            footer=EmbedFooter(
                text=truncate(self.ctx.footer_text, caps.footer),
                icon_url=truncate(self.ctx.footer_icon_url, caps.url),
            ),
        )


class EventHandler(ABC):
    """Abstract base for event-type handlers."""

    @property
    @abstractmethod
    def event_types(self) -> List[str]:
        """X-Gitlab-Event values handled (e.g., 'Push Hook')."""
        ...

    @abstractmethod
    def handle(
        self, event_type: str, payload: Dict[str, Any], ctx: HandlerContext
    ) -> NotificationRecord:
        """Map one payload to a record. May raise; the normalizer catches."""
        ...
