"""Shared fixtures for hookrelay tests."""

from typing import Any, List, Optional, Sequence, Tuple

import pytest

from hookrelay.connection import LifecycleEmitter
from hookrelay.handlers import HandlerContext
from hookrelay.models import Caps, ConnectionState, NotificationRecord
from hookrelay.normalizer import EventNormalizer
from hookrelay.service import RelayService

TOKEN = "s3cret-token"


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


class FakeConnection(LifecycleEmitter):
    """In-memory chat connection recording every send."""

    def __init__(self, status: ConnectionState = ConnectionState.READY):
        super().__init__()
        self._status = status
        self.sent: List[Tuple[str, List[NotificationRecord]]] = []
        self.fail_with: Optional[Exception] = None
        self.reconnect_calls = 0
        self.probe_calls = 0
        self.reconnect_result = ConnectionState.READY

    @property
    def status(self) -> ConnectionState:
        return self._status

    @status.setter
    def status(self, value: ConnectionState) -> None:
        self._status = value

    async def send(self, content: str = "", embeds: Sequence[NotificationRecord] = ()) -> Any:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((content, list(embeds)))
        return {}

    async def connect(self) -> bool:
        self._status = self.reconnect_result
        if self._status == ConnectionState.READY:
            await self.emit("ready")
            return True
        return False

    async def reconnect(self) -> bool:
        self.reconnect_calls += 1
        self._status = ConnectionState.RECONNECTING
        await self.emit("reconnecting")
        return await self.connect()

    async def probe(self) -> bool:
        self.probe_calls += 1
        return self._status == ConnectionState.READY

    async def destroy(self) -> None:
        self._status = ConnectionState.DESTROYED
        await self.emit("disconnect", "destroyed")

    @property
    def embeds(self) -> List[NotificationRecord]:
        return [record for _, batch in self.sent for record in batch]


@pytest.fixture
def token():
    return TOKEN


@pytest.fixture
def ctx():
    """Handler context with the default caps and no debug sink."""
    return HandlerContext(caps=Caps(), base_url="https://gitlab.example.com")


@pytest.fixture
def normalizer(ctx):
    return EventNormalizer(ctx)


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def service(fake_connection):
    """Relay service around a fake connection, monitor not started."""
    return RelayService(
        fake_connection,
        secret=TOKEN,
        debug=False,
        bot_name="relaybot",
        master_user_id="42",
        poll_interval=0.01,
        probe_interval=0,
    )


@pytest.fixture
def make_connection():
    """Factory for extra fake connections in a given state."""
    return FakeConnection
