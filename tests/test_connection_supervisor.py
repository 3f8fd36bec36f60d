"""
Tests for the connection supervisor: non-blocking start, retry rounds,
liveness probe and operation timeouts.
"""
import asyncio
import time

import pytest

from delivery_api.connection import ConnectionState, ConnectionStatus, ConnectionSupervisor
from delivery_api.storage import StoreConnectionError, StoreError, StoreTimeoutError

from fakes import FlakyStore


def make_supervisor(store, **overrides):
    settings = dict(probe_interval=0.05, base_delay=0.01, max_attempts=3, operation_timeout=0.2)
    settings.update(overrides)
    return ConnectionSupervisor(store, **settings)


async def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() >= deadline:
            return False
        await asyncio.sleep(0.01)
    return True


class TestConnectionState:
    def test_initial_state_is_disconnected(self):
        supervisor = make_supervisor(FlakyStore())
        state = supervisor.connection_state()

        assert state.status is ConnectionStatus.DISCONNECTED
        assert state.connected is False
        assert state.retry_count == 0
        assert supervisor.is_running is False

    def test_to_dict_uses_camel_case(self):
        state = ConnectionState(status=ConnectionStatus.CONNECTED)

        assert state.to_dict() == {
            "status": "connected",
            "connected": True,
            "retryCount": 0,
            "lastError": None,
            "lastChecked": None,
        }

    def test_state_is_immutable(self):
        state = ConnectionState()
        with pytest.raises(AttributeError):
            state.retry_count = 3


class TestStartAndRetry:
    def test_start_does_not_block(self):
        """start() returns before the store has answered."""
        store = FlakyStore()
        store.down = True

        async def scenario():
            supervisor = make_supervisor(store)
            began = time.monotonic()
            supervisor.start()
            elapsed = time.monotonic() - began
            state = supervisor.connection_state()
            await supervisor.stop()
            return elapsed, state

        elapsed, state = asyncio.run(scenario())

        assert elapsed < 0.05
        assert state.connected is False

    def test_connects_and_runs_hook(self):
        store = FlakyStore()
        calls = []

        async def on_connected():
            calls.append(store.connect_calls)

        async def scenario():
            supervisor = make_supervisor(store, on_connected=on_connected)
            supervisor.start()
            connected = await supervisor.wait_until_connected(1.0)
            await supervisor.stop()
            return connected

        assert asyncio.run(scenario()) is True
        assert calls == [1]

    def test_retries_until_store_comes_back(self):
        store = FlakyStore()
        store.down = True

        async def scenario():
            supervisor = make_supervisor(store, max_attempts=5)
            supervisor.start()
            await wait_until(lambda: store.connect_calls >= 2)
            store.down = False
            connected = await supervisor.wait_until_connected(2.0)
            state = supervisor.connection_state()
            await supervisor.stop()
            return connected, state

        connected, state = asyncio.run(scenario())

        assert connected is True
        assert state.retry_count == 0
        assert state.last_error is None

    def test_round_stops_after_max_attempts(self):
        """After the cap the supervisor waits for a probe tick or manual reconnect."""
        store = FlakyStore()
        store.down = True

        async def scenario():
            supervisor = make_supervisor(store, max_attempts=2, probe_interval=10)
            supervisor.start()
            await wait_until(lambda: store.connect_calls >= 2)
            await asyncio.sleep(0.1)
            calls_after_round = store.connect_calls
            state = supervisor.connection_state()
            await supervisor.stop()
            return calls_after_round, state

        calls_after_round, state = asyncio.run(scenario())

        assert calls_after_round == 2
        assert state.status is ConnectionStatus.DISCONNECTED
        assert state.retry_count == 2
        assert "store is down" in state.last_error

    def test_manual_reconnect_starts_new_round(self):
        store = FlakyStore()
        store.down = True

        async def scenario():
            supervisor = make_supervisor(store, max_attempts=1, probe_interval=10)
            supervisor.start()
            await wait_until(lambda: store.connect_calls >= 1)
            await asyncio.sleep(0.05)
            store.down = False
            requested = supervisor.reconnect()
            connected = await supervisor.wait_until_connected(1.0)
            again = supervisor.reconnect()
            await supervisor.stop()
            return requested, connected, again

        requested, connected, again = asyncio.run(scenario())

        assert requested is True
        assert connected is True
        # Nothing to do while connected
        assert again is False

    def test_failing_hook_fails_the_attempt(self):
        store = FlakyStore()
        attempts = []

        async def on_connected():
            attempts.append(1)
            if len(attempts) == 1:
                raise StoreError("load failed")

        async def scenario():
            supervisor = make_supervisor(store, on_connected=on_connected)
            supervisor.start()
            connected = await supervisor.wait_until_connected(1.0)
            await supervisor.stop()
            return connected

        assert asyncio.run(scenario()) is True
        assert len(attempts) == 2


class TestProbeAndOperations:
    def test_probe_failure_disconnects(self):
        store = FlakyStore()

        async def scenario():
            supervisor = make_supervisor(store)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            store.down = True
            noticed = await wait_until(lambda: not supervisor.connection_state().connected)
            state = supervisor.connection_state()
            store.down = False
            recovered = await supervisor.wait_until_connected(2.0)
            await supervisor.stop()
            return noticed, state, recovered

        noticed, state, recovered = asyncio.run(scenario())

        assert noticed is True
        assert state.last_error
        assert recovered is True

    def test_probe_updates_last_checked(self):
        store = FlakyStore()

        async def scenario():
            supervisor = make_supervisor(store)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            first = supervisor.connection_state().last_checked
            await asyncio.sleep(0.15)
            second = supervisor.connection_state().last_checked
            await supervisor.stop()
            return first, second

        first, second = asyncio.run(scenario())

        assert second > first

    def test_execute_timeout_flips_to_disconnected(self):
        store = FlakyStore()
        store.delay = 0.5

        async def scenario():
            supervisor = make_supervisor(store, operation_timeout=0.05, probe_interval=10)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            with pytest.raises(StoreTimeoutError):
                await supervisor.execute(store.save_bulk, "products", {"p1": True})
            state = supervisor.connection_state()
            store.delay = 0.0
            await supervisor.stop()
            return state

        state = asyncio.run(scenario())

        assert state.connected is False
        assert "timed out" in state.last_error

    def test_execute_connection_error_flips_to_disconnected(self):
        store = FlakyStore()

        async def scenario():
            supervisor = make_supervisor(store, probe_interval=10)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            store.down = True
            with pytest.raises(StoreConnectionError):
                await supervisor.execute(store.snapshot)
            state = supervisor.connection_state()
            await supervisor.stop()
            return state

        assert asyncio.run(scenario()).connected is False

    def test_execute_store_error_keeps_connection(self):
        store = FlakyStore()
        store.fail_saves = True

        async def scenario():
            supervisor = make_supervisor(store, probe_interval=10)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            with pytest.raises(StoreError):
                await supervisor.execute(store.clear, "products")
            state = supervisor.connection_state()
            await supervisor.stop()
            return state

        assert asyncio.run(scenario()).connected is True

    def test_call_does_not_touch_state(self):
        store = FlakyStore()
        store.down = True

        async def scenario():
            supervisor = make_supervisor(store)
            with pytest.raises(StoreConnectionError):
                await supervisor.call(store.ping)
            return supervisor.connection_state()

        state = asyncio.run(scenario())

        assert state.status is ConnectionStatus.DISCONNECTED
        assert state.last_error is None

    def test_stop_closes_and_disconnects(self):
        store = FlakyStore()

        async def scenario():
            supervisor = make_supervisor(store)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            await supervisor.stop()
            return supervisor

        supervisor = asyncio.run(scenario())

        assert supervisor.is_running is False
        assert supervisor.connection_state().connected is False

    def test_stop_right_after_mark_disconnected(self):
        """Shutdown finishes even when the loop was just woken for a retry round."""
        store = FlakyStore()

        async def scenario():
            supervisor = make_supervisor(store)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            store.down = True
            supervisor.mark_disconnected("store went away")
            await asyncio.wait_for(asyncio.shield(supervisor.stop()), timeout=2.0)
            return supervisor

        supervisor = asyncio.run(scenario())

        assert supervisor.is_running is False

    def test_reconnect_waits_for_abandoned_call(self):
        """A timed-out write lands in the store before the next connect completes."""
        store = FlakyStore()
        store.delay = 0.3

        async def scenario():
            supervisor = make_supervisor(store, operation_timeout=0.05, probe_interval=10)
            supervisor.start()
            await supervisor.wait_until_connected(1.0)
            with pytest.raises(StoreTimeoutError):
                await supervisor.execute(store.save_bulk, "products", {"late": True})
            store.delay = 0.0
            connected = await supervisor.wait_until_connected(2.0)
            landed = store.load_all("products")
            await supervisor.stop()
            return connected, landed

        connected, landed = asyncio.run(scenario())

        assert connected is True
        assert landed == {"late": True}
