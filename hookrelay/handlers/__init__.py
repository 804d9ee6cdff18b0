"""Handler registry — maps X-Gitlab-Event values to handler instances."""

from typing import Dict, List

from .base import EventHandler, HandlerContext, RecordBuilder, require
from .generic import PlaceholderHandler, UnknownEventHandler
from .issues import IssueHandler
from .merge_requests import MergeRequestHandler
from .notes import NoteHandler
from .push import PushHandler, TagPushHandler
from .wiki import WikiPageHandler

_HANDLER_CLASSES = [
    PushHandler,
    TagPushHandler,
    IssueHandler,
    NoteHandler,
    MergeRequestHandler,
    WikiPageHandler,
    PlaceholderHandler,
]

FALLBACK = UnknownEventHandler()

_REGISTRY: Dict[str, EventHandler] = {}


def register_handlers() -> Dict[str, EventHandler]:
    """Populate the registry once; returns it."""
    if not _REGISTRY:
        for cls in _HANDLER_CLASSES:
            handler = cls()
            for event_type in handler.event_types:
                _REGISTRY[event_type] = handler
    return _REGISTRY


def get_handler(event_type: str) -> EventHandler:
    """Handler for ``event_type``, or the catch-all."""
    return register_handlers().get(event_type, FALLBACK)


def list_handlers() -> Dict[str, str]:
    """Event type -> handler class name."""
    return {name: type(h).__name__ for name, h in register_handlers().items()}


def supported_events() -> List[str]:
    return sorted(register_handlers())


__all__ = [
    "EventHandler",
    "HandlerContext",
    "RecordBuilder",
    "require",
    "get_handler",
    "list_handlers",
    "register_handlers",
    "supported_events",
]
