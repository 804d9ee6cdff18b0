"""
Chat Connection Monitor — polls connection health and reconnects.

Every POLL_INTERVAL seconds:
    maintenance window active          -> leave the connection alone
    DISCONNECTED / DESTROYED           -> mark recovery pending, reconnect
    READY and PROBE_INTERVAL elapsed   -> active health probe

The recovery flag is cleared by the service once the post-recovery replay
has been sent (see RelayService.on_ready).
"""

import asyncio
import contextlib
import logging
import time
from typing import Optional

from . import config as cfg
from .connection import ChatConnection
from .models import ConnectionState, LinkState

log = logging.getLogger("hookrelay.monitor")

DROPPED = (ConnectionState.DISCONNECTED, ConnectionState.DESTROYED)


class ChatConnectionMonitor:

    def __init__(
        self,
        connection: ChatConnection,
        state: LinkState,
        poll_interval: float = cfg.POLL_INTERVAL,
        probe_interval: float = cfg.PROBE_INTERVAL,
    ):
        self.connection = connection
        self.state = state
        self.poll_interval = poll_interval
        self.probe_interval = probe_interval
        self._reconnecting = False
        self._last_probe = time.monotonic()
        self._task: Optional[asyncio.Task] = None

    @property
    def reconnect_in_flight(self) -> bool:
        return self._reconnecting

    async def check(self) -> bool:
        """One monitor tick. True when a reconnect was issued."""
        if self.state.maintenance:
            return False

        status = self.connection.status
        if status in DROPPED:
            if self._reconnecting:
                return False
            if not self.state.recovery_pending:
                log.warning(f"Chat connection lost (status={status.value}); reconnecting")
                self.state.recovery_pending = True
            else:
                log.info("Chat connection still down; retrying reconnect")
            self._reconnecting = True
            try:
                await self.connection.reconnect()
            finally:
                self._reconnecting = False
            return True

        if status == ConnectionState.READY and self.probe_interval > 0:
            now = time.monotonic()
            if now - self._last_probe >= self.probe_interval:
                self._last_probe = now
                await self.connection.probe()
        return False

    async def run(self) -> None:
        """Polling loop; runs until cancelled."""
        log.info(
            f"Monitor started: poll={self.poll_interval}s, probe={self.probe_interval}s"
        )
        while True:
            try:
                await self.check()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log.error(f"Monitor check failed: {exc}", exc_info=True)
            await asyncio.sleep(self.poll_interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            log.info("Monitor stopped")
