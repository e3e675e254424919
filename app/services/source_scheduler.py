# app/services/source_scheduler.py
"""
Source scheduler — one polling task per backend source.

Each source runs its own loop on its own interval:
  fetch → write result to the snapshot store → wait for the next tick → repeat

- The first fetch runs immediately when the loop starts.
- A loop never overlaps itself: fetch N+1 starts only after fetch N is written.
- Failures are recorded in the snapshot and the loop keeps going. The next tick
  is the retry — no backoff, no immediate retry.
- Only the first load shows loading=True; later refreshes are silent.
- stop() cancels the loop's token; a fetch that settles afterwards is dropped.
- refresh_now() waits for a tick that started after the call, so the caller
  sees a result fetched with the current parameters.

SourceRegistry adds observation lifetime on top: the first observer of a
source starts its loop, the last one to leave stops it.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from app.services.errors import DashboardError, ErrorInfo, NetworkError, NotFoundError
from app.services.snapshot_store import SnapshotStore, SourceId
from app.utils.logger import get_logger

logger = get_logger(__name__)

FetchFn = Callable[[], Awaitable[Any]]


class CancellationToken:
    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class SourceDefinition:
    source_id: SourceId
    interval_seconds: float
    fetch_fn: FetchFn
    error_message: str = "Failed to fetch data"
    not_found_message: str = "No data available"


class _PollLoop:
    def __init__(self, definition: SourceDefinition):
        self.definition = definition
        self.token = CancellationToken()
        self.wake = asyncio.Event()
        self.task: Optional[asyncio.Task] = None
        self.ticks = 0
        self.waiters: list[asyncio.Future] = []   # served by the next tick
        self.serving: list[asyncio.Future] = []   # served by the tick in progress

    def fail_waiters(self, error: BaseException):
        for waiter in self.waiters + self.serving:
            if not waiter.done():
                waiter.set_exception(error)
        self.waiters, self.serving = [], []


class SourceScheduler:
    def __init__(self, store: SnapshotStore, timeout_seconds: float = 10.0):
        self.store = store
        self.timeout_seconds = timeout_seconds
        self._loops: dict[SourceId, _PollLoop] = {}
        self._retired: set[asyncio.Task] = set()   # cancelled, not yet finished

    # ── Control ──────────────────────────────────────────────────────────

    def start(self, source_id: SourceId, interval_seconds: float, fetch_fn: FetchFn,
              error_message: str = "Failed to fetch data",
              not_found_message: str = "No data available") -> bool:
        return self.start_definition(SourceDefinition(
            source_id, interval_seconds, fetch_fn, error_message, not_found_message,
        ))

    def start_definition(self, definition: SourceDefinition) -> bool:
        source_id = definition.source_id
        if source_id in self._loops:
            logger.warning(f"⚠️  Polling for {source_id.value} already started — ignoring start()")
            return False

        loop = _PollLoop(definition)
        loop.task = asyncio.create_task(self._run(loop), name=f"poller-{source_id.value}")
        self._loops[source_id] = loop
        logger.info(f"📡 Polling {source_id.value} every {definition.interval_seconds}s")
        return True

    def stop(self, source_id: SourceId) -> bool:
        """Stop a loop. No store write for this source happens after this returns."""
        loop = self._loops.pop(source_id, None)
        if loop is None:
            return False
        loop.token.cancel()
        loop.fail_waiters(DashboardError(f"Polling for {source_id.value} stopped"))
        if loop.task is not None:
            loop.task.cancel()
            if not loop.task.done():
                self._retired.add(loop.task)
                loop.task.add_done_callback(self._retired.discard)
        logger.info(f"🛑 Stopped polling {source_id.value}")
        return True

    def refresh(self, source_id: SourceId) -> bool:
        """Run the next tick now instead of waiting out the interval."""
        loop = self._loops.get(source_id)
        if loop is None:
            return False
        loop.wake.set()
        return True

    async def refresh_now(self, source_id: SourceId):
        """
        Wake the loop and wait for the tick that follows. Returns the snapshot
        that tick wrote, or raises the error its fetch failed with.
        """
        loop = self._loops.get(source_id)
        if loop is None:
            raise KeyError(f"Source {source_id.value} is not being polled")
        waiter = asyncio.get_running_loop().create_future()
        loop.waiters.append(waiter)
        loop.wake.set()
        return await waiter

    def is_running(self, source_id: SourceId) -> bool:
        return source_id in self._loops

    def running_sources(self) -> list[SourceId]:
        return list(self._loops)

    async def drain(self):
        """Wait for stopped loops to finish unwinding."""
        await asyncio.gather(*list(self._retired), return_exceptions=True)

    async def aclose(self):
        for source_id in list(self._loops):
            self.stop(source_id)
        await self.drain()

    # ── Loop ─────────────────────────────────────────────────────────────

    async def _run(self, loop: _PollLoop):
        interval = loop.definition.interval_seconds
        clock = asyncio.get_running_loop()
        while not loop.token.cancelled:
            started = clock.time()
            await self._tick(loop)
            if loop.token.cancelled:
                break

            delay = max(0.0, interval - (clock.time() - started))
            try:
                await asyncio.wait_for(loop.wake.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    async def _tick(self, loop: _PollLoop):
        definition = loop.definition
        source_id = definition.source_id
        loop.ticks += 1
        # Requests arriving from here on wake the tick after this one
        loop.wake.clear()
        loop.serving, loop.waiters = loop.waiters, []

        current = self.store.get(source_id)
        if current.data is None and not current.loading:
            # First load still pending after a failure: show the spinner again
            self.store.set(source_id, loading=True)

        data = None
        error: Optional[ErrorInfo] = None
        failure: Optional[Exception] = None
        try:
            data = await asyncio.wait_for(definition.fetch_fn(), timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            failure = NetworkError(f"{definition.error_message}: timed out after {self.timeout_seconds}s")
            error = ErrorInfo.from_exception(failure)
        except NotFoundError as e:
            failure = e
            error = ErrorInfo.from_exception(e, definition.not_found_message)
        except Exception as e:
            failure = e
            error = ErrorInfo.from_exception(e, f"{definition.error_message}: {e}")
            if not isinstance(e, DashboardError):
                logger.error(f"❌ {source_id.value} — unexpected error: {e}", exc_info=True)

        if loop.token.cancelled:
            logger.debug(f"Dropping late result for stopped source {source_id.value}")
            return

        now = datetime.now(timezone.utc)
        if error is None:
            snapshot = self.store.set(source_id, data=data, error=None, loading=False,
                                      last_fetched_at=now, last_success_at=now)
        else:
            logger.warning(f"⚠️  {source_id.value} — {error.kind}: {error.message}")
            snapshot = self.store.set(source_id, error=error, loading=False, last_fetched_at=now)

        for waiter in loop.serving:
            if waiter.done():
                continue
            if failure is None:
                waiter.set_result(snapshot)
            else:
                waiter.set_exception(failure)
        loop.serving = []


class SourceRegistry:
    """Known sources plus reference-counted observation."""

    def __init__(self, scheduler: SourceScheduler):
        self.scheduler = scheduler
        self._definitions: dict[SourceId, SourceDefinition] = {}
        self._observers: dict[SourceId, int] = {}

    def register(self, definition: SourceDefinition):
        self._definitions[definition.source_id] = definition

    def definition(self, source_id: SourceId) -> Optional[SourceDefinition]:
        return self._definitions.get(source_id)

    @property
    def sources(self) -> list[SourceId]:
        return list(self._definitions)

    def observer_count(self, source_id: SourceId) -> int:
        return self._observers.get(source_id, 0)

    def acquire(self, source_id: SourceId):
        definition = self._definitions.get(source_id)
        if definition is None:
            raise KeyError(f"Unknown source: {source_id}")
        count = self._observers.get(source_id, 0) + 1
        self._observers[source_id] = count
        if count == 1:
            self.scheduler.start_definition(definition)

    def release(self, source_id: SourceId):
        count = self._observers.get(source_id, 0)
        if count == 0:
            logger.warning(f"release() on unobserved source {source_id.value}")
            return
        if count == 1:
            del self._observers[source_id]
            self.scheduler.stop(source_id)
        else:
            self._observers[source_id] = count - 1

    @asynccontextmanager
    async def observe(self, source_id: SourceId):
        self.acquire(source_id)
        try:
            yield self.scheduler.store
        finally:
            self.release(source_id)

    async def fetch_now(self, source_id: SourceId):
        """
        Fetch a source now through its polling loop, starting the loop for the
        duration of the call if nobody observes it. Errors propagate.
        """
        try:
            async with self.observe(source_id):
                return await self.scheduler.refresh_now(source_id)
        finally:
            await self.scheduler.drain()

    async def aclose(self):
        self._observers.clear()
        await self.scheduler.aclose()
