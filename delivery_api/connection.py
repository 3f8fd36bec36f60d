"""
Connection Supervisor - lifecycle of the connection to the availability store.

The supervisor owns the single connection to the backing store and the
process-wide ConnectionState. It runs as one background asyncio task:

    DISCONNECTED --start/reconnect--> CONNECTING --success--> CONNECTED
         ^                                 |                       |
         |------------ attempt failed -----+                       |
         |------------ probe failed / operation error / timeout ---+

Retry policy:
- Attempt n of a retry round waits n * base_delay seconds after failing.
- After max_attempts failures the round ends and the state stays
  DISCONNECTED until the next liveness-probe tick or a reconnect() call.
- A round first waits for store calls abandoned after a timeout, so a late
  write always lands before the cache is reloaded from the store.

While CONNECTED a ping() round-trip is issued every probe_interval seconds.

Request handlers never wait on a connection attempt: they read
connection_state(), which always returns the last-known value, and run store
operations through execute(), which applies the operation timeout and flips
the state to DISCONNECTED on a connectivity failure.

Usage:
    supervisor = ConnectionSupervisor(store, probe_interval=30)
    supervisor.on_connected = service.reload
    supervisor.start()          # returns immediately
    ...
    await supervisor.execute(store.save_bulk, kind, patch)
    ...
    await supervisor.stop()
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from .storage.base import AvailabilityStore, StoreConnectionError, StoreTimeoutError

logger = logging.getLogger(__name__)


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ConnectionState:
    """Immutable snapshot of the store connection. Replaced, never mutated."""

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    retry_count: int = 0
    last_error: Optional[str] = None
    last_checked: Optional[datetime] = None

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "connected": self.connected,
            "retryCount": self.retry_count,
            "lastError": self.last_error,
            "lastChecked": self.last_checked.isoformat() if self.last_checked else None,
        }


class ConnectionSupervisor:
    """
    Maintains connectivity to an AvailabilityStore in the background.

    Args:
        store: The availability store to supervise.
        probe_interval: Seconds between liveness probes while connected.
        base_delay: Backoff unit; attempt n waits n * base_delay after failing.
        max_attempts: Connect attempts per retry round.
        operation_timeout: Timeout applied to every store call.
        on_connected: Optional coroutine function awaited inside each connect
                      attempt, before the state becomes CONNECTED. Used to
                      reload the sync cache. If it raises, the attempt fails.
    """

    def __init__(
        self,
        store: AvailabilityStore,
        probe_interval: float = 30.0,
        base_delay: float = 2.0,
        max_attempts: int = 5,
        operation_timeout: float = 5.0,
        on_connected: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.store = store
        self.probe_interval = probe_interval
        self.base_delay = base_delay
        self.max_attempts = max(1, max_attempts)
        self.operation_timeout = operation_timeout
        self.on_connected = on_connected

        self._state = ConnectionState()
        self._task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stopping = False
        # Worker-thread calls that outlived their timeout and may still write
        self._abandoned: Set[asyncio.Future] = set()

    # =========================================================================
    # Public interface
    # =========================================================================

    def connection_state(self) -> ConnectionState:
        """Return the last-known connection state without blocking."""
        return self._state

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the supervision task on the running loop and return immediately."""
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._wake = asyncio.Event()
        self._stopping = False
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Started connection supervisor for %s store (probe every %.0fs, %d attempts per round)",
            self.store.backend_name,
            self.probe_interval,
            self.max_attempts,
        )

    async def stop(self) -> None:
        """Cancel the supervision task and close the store."""
        if self._task:
            # The flag ends the loop even if the cancellation is swallowed
            # by an await that was completing at the same moment.
            self._stopping = True
            self._wake_up()
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        try:
            self.store.close()
        except Exception as e:
            logger.warning("Error closing %s store: %s", self.store.backend_name, e)

        self._set_state(ConnectionStatus.DISCONNECTED, retry_count=0, last_error=self._state.last_error)
        logger.info("Stopped connection supervisor")

    def reconnect(self) -> bool:
        """
        Ask for an immediate reconnect round.

        Returns:
            True if a round was requested, False if already connected or
            a connect attempt is in progress.
        """
        if self._state.status is not ConnectionStatus.DISCONNECTED:
            return False
        logger.info("Manual reconnect requested")
        self._wake_up()
        return True

    def mark_disconnected(self, reason: str) -> None:
        """Flip to DISCONNECTED and wake the supervision loop to start retrying."""
        previous = self._state.status
        self._set_state(ConnectionStatus.DISCONNECTED, retry_count=0, last_error=reason)
        if previous is not ConnectionStatus.DISCONNECTED:
            logger.warning("Store marked disconnected: %s", reason)
        self._wake_up()

    async def wait_until_connected(self, timeout: float) -> bool:
        """Poll until connected or ``timeout`` seconds elapse. Returns the final connected flag."""
        deadline = time.monotonic() + timeout
        while not self._state.connected:
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(0.01)
        return True

    async def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Run a blocking store call in a worker thread under the operation timeout.

        The state is not touched. A call that times out is abandoned: the
        worker thread may still finish and its result is discarded, but the
        next connect attempt waits for it so a late write cannot land after
        the cache has been reloaded.

        Raises:
            StoreTimeoutError: If the call exceeds operation_timeout.
            StoreError: Whatever the store raised.
        """
        name = getattr(fn, "__name__", None) or getattr(getattr(fn, "func", None), "__name__", "store call")
        future = asyncio.ensure_future(asyncio.to_thread(fn, *args, **kwargs))
        try:
            done, _ = await asyncio.wait({future}, timeout=self.operation_timeout)
        except asyncio.CancelledError:
            self._abandon(future)
            raise
        if not done:
            self._abandon(future)
            raise StoreTimeoutError(name, self.operation_timeout)
        return future.result()

    async def execute(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Like call(), but a timeout or connectivity failure flips the state to
        DISCONNECTED before the error is re-raised to the caller.
        """
        try:
            return await self.call(fn, *args, **kwargs)
        except StoreConnectionError as e:
            self.mark_disconnected(str(e))
            raise

    # =========================================================================
    # Supervision loop
    # =========================================================================

    async def _run(self) -> None:
        while not self._stopping:
            try:
                if not self._state.connected:
                    connected = await self._connect_with_retry()
                    if self._stopping:
                        break
                    if not connected:
                        await self._wait(self.probe_interval)
                        continue

                await self._wait(self.probe_interval)

                if self._state.connected and not self._stopping:
                    await self._probe()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in connection supervisor loop: %s", e)
                await asyncio.sleep(self.base_delay)

    async def _connect_with_retry(self) -> bool:
        """One retry round. Returns True once connected, False after max_attempts failures."""
        self._wake.clear()
        await self._settle_abandoned()

        for attempt in range(1, self.max_attempts + 1):
            if self._stopping:
                return False
            self._set_state(
                ConnectionStatus.CONNECTING,
                retry_count=attempt - 1,
                last_error=self._state.last_error,
            )
            try:
                await self.call(self.store.connect)
                if self.on_connected is not None:
                    await asyncio.wait_for(self.on_connected(), timeout=self.operation_timeout * 2)
            except Exception as e:
                error = str(e) or type(e).__name__
                self._set_state(ConnectionStatus.DISCONNECTED, retry_count=attempt, last_error=error)
                logger.warning(
                    "Store connection attempt %d/%d failed: %s",
                    attempt,
                    self.max_attempts,
                    error,
                )
                if attempt < self.max_attempts and not self._stopping:
                    await asyncio.sleep(attempt * self.base_delay)
                continue

            if self._stopping:
                return False

            self._set_state(ConnectionStatus.CONNECTED, retry_count=0, last_error=None)
            logger.info(
                "Connected to %s store (attempt %d/%d)",
                self.store.backend_name,
                attempt,
                self.max_attempts,
            )
            return True

        logger.error(
            "%s store still unreachable after %d attempts; waiting for next probe or manual reconnect",
            self.store.backend_name,
            self.max_attempts,
        )
        return False

    async def _probe(self) -> None:
        try:
            await self.call(self.store.ping)
        except Exception as e:
            self.mark_disconnected(f"Liveness probe failed: {e}")
            return
        self._state = replace(self._state, last_checked=datetime.now(timezone.utc))
        logger.debug("Liveness probe ok")

    async def _wait(self, timeout: float) -> None:
        """Sleep up to ``timeout`` seconds, returning early if woken."""
        waiter = asyncio.ensure_future(self._wake.wait())
        try:
            await asyncio.wait({waiter}, timeout=timeout)
        finally:
            waiter.cancel()
        self._wake.clear()

    def _abandon(self, future: asyncio.Future) -> None:
        self._abandoned.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: asyncio.Future) -> None:
        self._abandoned.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.warning("Abandoned store call finished with error: %s", future.exception())

    async def _settle_abandoned(self) -> None:
        """Wait for timed-out store calls to finish before (re)connecting."""
        if not self._abandoned:
            return
        logger.info("Waiting for %d abandoned store call(s) to finish", len(self._abandoned))
        await asyncio.wait(set(self._abandoned))

    def _wake_up(self) -> None:
        if self._wake is None or self._loop is None:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._wake.set()
        else:
            self._loop.call_soon_threadsafe(self._wake.set)

    def _set_state(self, status: ConnectionStatus, retry_count: int, last_error: Optional[str]) -> None:
        self._state = ConnectionState(
            status=status,
            retry_count=retry_count,
            last_error=last_error,
            last_checked=datetime.now(timezone.utc),
        )
