"""
Relay Service — the process-wide context object.

Built once at startup and handed to the HTTP layer, the command table and
the CLI. Owns the connection, buffer, dispatcher, monitor and the shared
LinkState; nothing in the package keeps module-level mutable state.
"""

import asyncio
import contextlib
import logging
import time
from collections import deque
from dataclasses import replace
from typing import Any, Deque, Dict, Mapping, Optional, Tuple

from . import config as cfg
from .buffer import DeliveryBuffer
from .connection import ChatConnection, DiscordWebhookConnection, WebhookChannel
from .dispatcher import NotificationDispatcher
from .errors import RelayError
from .handlers import HandlerContext
from .ingest import RequestIngestor, parse_json_body
from .models import LinkState, NotificationRecord
from .monitor import ChatConnectionMonitor
from .normalizer import EventNormalizer
from .reporter import ErrorReporter, Reply

log = logging.getLogger("hookrelay.service")


class DebugSink:
    """Raw request bodies for troubleshooting; inert unless enabled."""

    def __init__(self, enabled: bool = False, keep: int = 20):
        self.enabled = enabled
        self.recent: Deque[Tuple[str, str]] = deque(maxlen=keep)

    def capture(self, label: str, data: Any) -> None:
        if not self.enabled:
            return
        if isinstance(data, (bytes, bytearray)):
            text = bytes(data).decode("utf-8", errors="replace")
        else:
            text = repr(data)
        self.recent.append((label, text))
        log.info(f"[debug] {label}: {text}")


class RelayService:

    def __init__(
        self,
        connection: ChatConnection,
        secret: str = cfg.WEBHOOK_TOKEN,
        auth_header: str = cfg.AUTH_HEADER,
        event_header: str = cfg.EVENT_HEADER,
        handler_ctx: Optional[HandlerContext] = None,
        debug_channel: Optional[WebhookChannel] = None,
        debug: bool = cfg.DEBUG,
        bot_name: str = cfg.BOT_NAME,
        master_user_id: str = cfg.MASTER_USER_ID,
        poll_interval: float = cfg.POLL_INTERVAL,
        probe_interval: float = cfg.PROBE_INTERVAL,
        max_embeds: int = cfg.MAX_EMBEDS_PER_MESSAGE,
        max_chars: int = cfg.MAX_EMBED_CHARS_PER_MESSAGE,
    ):
        self.connection = connection
        self.secret = secret
        self.auth_header = auth_header
        self.event_header = event_header
        self.bot_name = bot_name
        self.master_user_id = master_user_id
        self.state = LinkState()
        self.debug_sink = DebugSink(enabled=debug)

        # The sink is per-service, so it is bound here rather than in config
        ctx = replace(handler_ctx or HandlerContext(), debug_sink=self.debug_sink.capture)
        self.normalizer = EventNormalizer(ctx)
        self.buffer = DeliveryBuffer()
        self.debug_channel = debug_channel
        self.reporter = ErrorReporter(connection, debug_channel, bot_name)
        self.dispatcher = NotificationDispatcher(
            connection, self.reporter, self.buffer, self.normalizer, bot_name, max_embeds, max_chars
        )
        self.monitor = ChatConnectionMonitor(connection, self.state, poll_interval, probe_interval)

        self.stats: Dict[str, int] = {"received": 0, "rejected": 0, "parse_errors": 0}
        self.started_at = time.time()
        self._maintenance_task: Optional[asyncio.Task] = None

        connection.on("ready", self.on_ready)
        connection.on("disconnect", self._on_disconnect)
        connection.on("reconnecting", self._on_reconnecting)
        connection.on("warn", self._on_warn)
        connection.on("error", self._on_error)

    # ── Lifecycle ─────────────────────────────────────────

    async def start(self) -> None:
        log.info(f"{self.bot_name} connecting to chat...")
        await self.connection.connect()
        self.monitor.start()

    async def stop(self) -> None:
        await self.monitor.stop()
        await self._cancel_maintenance_timer()
        for closable in (self.connection, self.debug_channel):
            aclose = getattr(closable, "aclose", None)
            if aclose is not None:
                await aclose()
        log.info(f"{self.bot_name} stopped")

    async def on_ready(self) -> None:
        log.info(f"{self.bot_name} is ready to receive data")
        if self.state.recovery_pending or len(self.buffer):
            await self.dispatcher.on_recovered()
            self.state.recovery_pending = False
        else:
            await self.dispatcher.announce(f"{self.bot_name} is online and ready to receive data")

    def _on_disconnect(self, reason: Any = None) -> None:
        log.warning(f"{self.bot_name} went offline: {reason or 'unknown reason'}")

    def _on_reconnecting(self) -> None:
        log.info(f"{self.bot_name} is attempting to reconnect")

    def _on_warn(self, message: Any = None) -> None:
        log.warning(f"Warning: {message}")

    def _on_error(self, error: Any = None) -> None:
        log.error(f"Error: {error or 'unknown error'}")

    # ── Webhook pipeline ──────────────────────────────────

    def new_ingestor(self, headers: Mapping[str, str], method: str, url: str) -> RequestIngestor:
        return RequestIngestor(
            headers, method, url,
            secret=self.secret,
            auth_header=self.auth_header,
            event_header=self.event_header,
        )

    async def process(
        self,
        event_type: str,
        body: bytes,
        content_type: str = "",
        reply: Optional[Reply] = None,
    ) -> NotificationRecord:
        """Parse, normalize and dispatch one accepted request body."""
        self.debug_sink.capture(f"raw body ({event_type or 'no event type'})", body)
        try:
            payload = parse_json_body(body)
        except RelayError as exc:
            self.stats["parse_errors"] += 1
            log.warning(f"Body for {event_type!r} is not JSON: {exc.message}")
            record = self.normalizer.parse_error_record(event_type, content_type, exc, body)
        else:
            record = self.normalizer.normalize(event_type, payload, raw=body)
        await self.dispatcher.handle(record, reply)
        return record

    # ── Operator controls ─────────────────────────────────

    def set_debug(self, enabled: bool) -> None:
        self.debug_sink.enabled = enabled
        log.info(f"Debug sink {'enabled' if enabled else 'disabled'}")

    async def begin_maintenance(self, seconds: float) -> None:
        """Take the connection offline without the monitor reconnecting.

        A new window replaces any window still running.
        """
        await self._cancel_maintenance_timer()
        self.state.maintenance = True
        await self.connection.destroy()

        async def _end() -> None:
            await asyncio.sleep(seconds)
            self.state.maintenance = False
            log.info("Finished operator-requested downtime")

        self._maintenance_task = asyncio.create_task(_end())

    async def _cancel_maintenance_timer(self) -> None:
        task, self._maintenance_task = self._maintenance_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def snapshot(self) -> Dict[str, Any]:
        return {
            "connection": self.connection.status.value,
            "uptime_s": int(time.time() - self.started_at),
            "buffered_now": len(self.buffer),
            "recovery_pending": self.state.recovery_pending,
            "maintenance": self.state.maintenance,
            "debug": self.debug_sink.enabled,
            "stats": {**self.stats, **self.dispatcher.stats},
        }


def build_service() -> RelayService:
    """Service wired from environment configuration."""
    connection = DiscordWebhookConnection(cfg.DISCORD_WEBHOOK_URL)
    debug_channel = (
        WebhookChannel(cfg.DISCORD_DEBUG_WEBHOOK_URL) if cfg.DISCORD_DEBUG_WEBHOOK_URL else None
    )
    return RelayService(connection, debug_channel=debug_channel)
