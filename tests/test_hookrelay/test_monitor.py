"""
Tests for hookrelay.monitor

Covers:
- Reconnect on DISCONNECTED / DESTROYED, with recovery flagged
- No action while READY (besides periodic probes) or in transition
- Maintenance window suppresses reconnects
- At most one reconnect in flight
- Polling loop start/stop
"""

import asyncio

import pytest

from hookrelay.models import ConnectionState, LinkState
from hookrelay.monitor import ChatConnectionMonitor


@pytest.fixture
def state():
    return LinkState()


class TestCheck:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [ConnectionState.DISCONNECTED, ConnectionState.DESTROYED])
    async def test_reconnects_when_dropped(self, fake_connection, state, status):
        fake_connection.status = status
        monitor = ChatConnectionMonitor(fake_connection, state, probe_interval=0)
        assert await monitor.check() is True
        assert fake_connection.reconnect_calls == 1
        assert state.recovery_pending is True
        assert fake_connection.status == ConnectionState.READY

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [ConnectionState.READY, ConnectionState.CONNECTING,
                                        ConnectionState.RECONNECTING])
    async def test_no_reconnect_otherwise(self, fake_connection, state, status):
        fake_connection.status = status
        monitor = ChatConnectionMonitor(fake_connection, state, probe_interval=0)
        assert await monitor.check() is False
        assert fake_connection.reconnect_calls == 0
        assert state.recovery_pending is False

    @pytest.mark.asyncio
    async def test_maintenance_suppresses_reconnect(self, fake_connection, state):
        fake_connection.status = ConnectionState.DESTROYED
        state.maintenance = True
        monitor = ChatConnectionMonitor(fake_connection, state, probe_interval=0)
        for _ in range(3):
            assert await monitor.check() is False
        assert fake_connection.reconnect_calls == 0

        state.maintenance = False
        assert await monitor.check() is True
        assert fake_connection.reconnect_calls == 1

    @pytest.mark.asyncio
    async def test_retries_while_still_down(self, fake_connection, state):
        fake_connection.status = ConnectionState.DISCONNECTED
        fake_connection.reconnect_result = ConnectionState.DISCONNECTED
        monitor = ChatConnectionMonitor(fake_connection, state, probe_interval=0)
        await monitor.check()
        await monitor.check()
        assert fake_connection.reconnect_calls == 2
        assert state.recovery_pending is True

    @pytest.mark.asyncio
    async def test_single_reconnect_in_flight(self, make_connection, state):
        gate = asyncio.Event()

        class SlowReconnect(make_connection):
            async def reconnect(self):
                self.reconnect_calls += 1
                await gate.wait()
                self.status = ConnectionState.READY
                return True

        conn = SlowReconnect(ConnectionState.DISCONNECTED)
        monitor = ChatConnectionMonitor(conn, state, probe_interval=0)

        first = asyncio.create_task(monitor.check())
        await asyncio.sleep(0)
        assert monitor.reconnect_in_flight is True
        assert await monitor.check() is False

        gate.set()
        assert await first is True
        assert conn.reconnect_calls == 1
        assert monitor.reconnect_in_flight is False

    @pytest.mark.asyncio
    async def test_probe_after_interval(self, fake_connection, state):
        monitor = ChatConnectionMonitor(fake_connection, state, probe_interval=0.01)
        await asyncio.sleep(0.02)
        await monitor.check()
        assert fake_connection.probe_calls == 1
        await monitor.check()
        assert fake_connection.probe_calls == 1

    @pytest.mark.asyncio
    async def test_probe_disabled(self, fake_connection, state):
        monitor = ChatConnectionMonitor(fake_connection, state, probe_interval=0)
        await monitor.check()
        assert fake_connection.probe_calls == 0


class TestLoop:

    @pytest.mark.asyncio
    async def test_start_and_stop(self, fake_connection, state):
        fake_connection.status = ConnectionState.DISCONNECTED
        monitor = ChatConnectionMonitor(fake_connection, state, poll_interval=0.01, probe_interval=0)
        monitor.start()
        await asyncio.sleep(0.05)
        await monitor.stop()
        assert fake_connection.reconnect_calls == 1
        assert fake_connection.status == ConnectionState.READY

    @pytest.mark.asyncio
    async def test_loop_survives_check_errors(self, make_connection, state):
        class Flaky(make_connection):
            async def reconnect(self):
                self.reconnect_calls += 1
                raise RuntimeError("network exploded")

        conn = Flaky(ConnectionState.DISCONNECTED)
        monitor = ChatConnectionMonitor(conn, state, poll_interval=0.01, probe_interval=0)
        monitor.start()
        await asyncio.sleep(0.05)
        await monitor.stop()
        assert conn.reconnect_calls >= 2
        assert monitor.reconnect_in_flight is False
