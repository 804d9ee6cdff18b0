"""
Chat Connection — the delivery boundary.

The core only reads ``status``, calls ``send`` and subscribes to lifecycle
notifications (``ready``, ``disconnect``, ``reconnecting``, ``warn``,
``error``). ``DiscordWebhookConnection`` implements that surface on top of
a Discord channel webhook:

    connect/probe  GET  <webhook url>  -> READY | DISCONNECTED
    send           POST <webhook url>  {"content", "embeds"}
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Union

import httpx

from . import config as cfg
from .errors import DeliveryError
from .models import ConnectionState, NotificationRecord

log = logging.getLogger("hookrelay.connection")

Listener = Callable[..., Union[None, Awaitable[None]]]

LIFECYCLE_EVENTS = ("ready", "disconnect", "reconnecting", "warn", "error")


class ChatConnection(Protocol):
    """What the relay needs from a chat client."""

    @property
    def status(self) -> ConnectionState: ...

    def on(self, event: str, callback: Listener) -> None: ...

    async def send(self, content: str = "", embeds: Sequence[NotificationRecord] = ()) -> Any: ...

    async def connect(self) -> bool: ...

    async def reconnect(self) -> bool: ...

    async def probe(self) -> bool: ...

    async def destroy(self) -> None: ...


class LifecycleEmitter:
    """Listener registry shared by connection implementations."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in LIFECYCLE_EVENTS}

    def on(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown lifecycle event: {event}")
        self._listeners[event].append(callback)

    async def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                log.error(f"Listener for '{event}' failed: {exc}", exc_info=True)
                if event != "error":
                    await self.emit("error", exc)


class DiscordWebhookConnection(LifecycleEmitter):
    """Chat connection backed by a Discord channel webhook."""

    def __init__(
        self,
        webhook_url: str = cfg.DISCORD_WEBHOOK_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = cfg.SEND_TIMEOUT,
        username: str = cfg.BOT_NAME,
    ):
        super().__init__()
        self.webhook_url = webhook_url
        self.username = username
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._status = ConnectionState.DISCONNECTED
        self._lock = asyncio.Lock()

    @property
    def status(self) -> ConnectionState:
        return self._status

    async def _set_status(self, status: ConnectionState, event: Optional[str] = None, *args: Any) -> None:
        previous, self._status = self._status, status
        if previous != status:
            log.info(f"Connection {previous.value} -> {status.value}")
        if event:
            await self.emit(event, *args)

    async def connect(self) -> bool:
        """Verify the webhook is reachable; emits ``ready`` or ``disconnect``."""
        if not self.webhook_url:
            await self.emit("warn", "No chat webhook URL configured")
            await self._set_status(ConnectionState.DISCONNECTED, "disconnect", "not configured")
            return False
        async with self._lock:
            if self._status != ConnectionState.RECONNECTING:
                await self._set_status(ConnectionState.CONNECTING)
            try:
                resp = await self._client.get(self.webhook_url)
            except httpx.HTTPError as exc:
                await self._set_status(ConnectionState.DISCONNECTED, "disconnect", str(exc))
                return False
            if resp.status_code >= 400:
                reason = f"HTTP {resp.status_code}"
                await self._set_status(ConnectionState.DISCONNECTED, "disconnect", reason)
                return False
            await self._set_status(ConnectionState.READY, "ready")
            return True

    async def reconnect(self) -> bool:
        await self._set_status(ConnectionState.RECONNECTING, "reconnecting")
        return await self.connect()

    async def probe(self) -> bool:
        """Health check while READY; only state changes are announced."""
        if self._status != ConnectionState.READY:
            return False
        try:
            resp = await self._client.get(self.webhook_url)
        except httpx.HTTPError as exc:
            await self._set_status(ConnectionState.DISCONNECTED, "disconnect", str(exc))
            return False
        if resp.status_code >= 400:
            await self._set_status(ConnectionState.DISCONNECTED, "disconnect", f"HTTP {resp.status_code}")
            return False
        return True

    async def send(self, content: str = "", embeds: Sequence[NotificationRecord] = ()) -> Dict[str, Any]:
        body: Dict[str, Any] = {"content": content, "embeds": [r.to_embed() for r in embeds]}
        if self.username:
            body["username"] = self.username
        try:
            resp = await self._client.post(self.webhook_url, params={"wait": "true"}, json=body)
        except httpx.HTTPError as exc:
            await self._set_status(ConnectionState.DISCONNECTED, "disconnect", str(exc))
            raise DeliveryError(f"chat unreachable: {exc}", context="send") from exc
        if resp.status_code >= 400:
            raise DeliveryError(
                f"chat rejected message: HTTP {resp.status_code} {resp.text[:200]}",
                context="send",
            )
        try:
            return resp.json()
        except ValueError:
            return {}

    async def destroy(self) -> None:
        await self._set_status(ConnectionState.DESTROYED, "disconnect", "destroyed")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class WebhookChannel:
    """Send-only channel (the operator debug webhook)."""

    def __init__(self, webhook_url: str, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = cfg.SEND_TIMEOUT):
        self.webhook_url = webhook_url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def send(self, content: str) -> None:
        try:
            resp = await self._client.post(self.webhook_url, json={"content": content})
        except httpx.HTTPError as exc:
            raise DeliveryError(f"debug channel unreachable: {exc}", context="debug channel") from exc
        if resp.status_code >= 400:
            raise DeliveryError(f"debug channel rejected message: HTTP {resp.status_code}",
                                context="debug channel")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
