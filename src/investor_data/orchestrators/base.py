"""Cache-vs-network policy shared by every resource kind."""

import asyncio
import functools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Generic, TypeVar

import pytz

from investor_data.data.cache_entry import CacheEntry
from investor_data.errors import FetchError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class OrchestratorState(Generic[T]):
    """
    Snapshot published to observers. Replaced, never mutated.

    ``key`` names the resource key ``data`` belongs to, which can lag the key
    being loaded while a parameter switch is in flight. ``last_error`` and
    ``data`` may both be set: stale data shown alongside a failed fetch.
    """

    data: T | None = None
    is_loading: bool = False
    last_error: FetchError | None = None
    last_fetched_at: datetime | None = None
    key: str | None = None
    from_cache: bool = False
    is_stale: bool = False


Listener = Callable[[OrchestratorState[Any]], None]


class FetchOrchestrator(Generic[T]):
    """
    Decides between cache and network for one resource kind.

    Guarantees at most one in-flight fetch per key: duplicate initialize or
    refresh calls join the running fetch (singleflight). The most recently
    requested key is authoritative; a completion for any other key updates its
    own cache slot but is never published.

    Subclasses provide ``cache_key``, ``fetch_remote`` and optionally
    ``normalize_param``.
    """

    resource = "resource"
    cache_prefix: str | None = None

    def __init__(
        self,
        entry: CacheEntry[T] | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self._entry = entry
        self._clock = clock
        self._state: OrchestratorState[T] = OrchestratorState()
        self._listeners: list[Listener] = []
        self._inflight: dict[str, asyncio.Task[None]] = {}
        self._init_tasks: dict[str, asyncio.Task[None]] = {}
        self._active_key: str | None = None
        self._active_param: Any = None

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def normalize_param(self, param: Any) -> Any:
        return param

    def cache_key(self, param: Any) -> str:
        raise NotImplementedError

    async def fetch_remote(self, param: Any) -> T:
        raise NotImplementedError

    def describe(self, value: T) -> str:
        """Short summary of a value for log lines."""
        return type(value).__name__

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrchestratorState[T]:
        return self._state

    @property
    def data(self) -> T | None:
        return self._state.data

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for state snapshots.

        The listener is called immediately with the current state, then once
        per published change.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)
        self._notify(listener, self._state)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, listener: Listener, state: OrchestratorState[T]) -> None:
        try:
            listener(state)
        except Exception:
            logger.exception(f"{self.resource}: state listener {listener!r} raised")

    def _publish(self, state: OrchestratorState[T]) -> None:
        self._state = state
        for listener in list(self._listeners):
            self._notify(listener, state)

    def _publish_loading(self) -> None:
        """Mark a request as outstanding unless it already is."""
        if not self._state.is_loading:
            self._publish(replace(self._state, is_loading=True, last_error=None))

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def initialize(self, param: Any = None) -> OrchestratorState[T]:
        """
        Load the resource, trusting a fresh cache slot over the network.

        The first call for a key wins; calls made while it is outstanding wait
        for it. Once data for the key is shown, further calls are no-ops
        until ``refresh``. An attempt that ends with nothing to show may be
        retried by calling initialize again.
        """
        param = self.normalize_param(param)
        key = self.cache_key(param)

        running = self._inflight.get(key)
        if (
            self._active_key == key
            and self._state.key == key
            and self._state.data is not None
            and (running is None or running.done())
        ):
            logger.debug(f"{self.resource}: {key} already initialized")
            return self._state

        task = self._init_tasks.get(key)
        if task is not None and not task.done():
            logger.debug(f"{self.resource}: joining initialize for {key}")
            # Switching back to a key still loading makes it the latest request again
            self._active_key = key
            self._active_param = param
            self._publish_loading()
            await asyncio.shield(task)
            return self._state

        task = asyncio.create_task(self._initialize(key, param))
        self._init_tasks[key] = task
        try:
            await task
        finally:
            if self._init_tasks.get(key) is task:
                self._init_tasks.pop(key, None)
        return self._state

    async def _initialize(self, key: str, param: Any) -> None:
        self._active_key = key
        self._active_param = param

        if self._entry is not None:
            cached, stored_at = await self._read_cache(key, best_effort=False)
            if cached is not None:
                if self._active_key != key:
                    return
                running = self._inflight.get(key)
                if running is not None and not running.done():
                    self._publish_loading()
                    await asyncio.shield(running)
                    return
                self._publish(
                    OrchestratorState(
                        data=cached,
                        key=key,
                        last_fetched_at=stored_at,
                        from_cache=True,
                    )
                )
                logger.info(f"{self.resource}: loaded {self.describe(cached)} for {key} from cache")
                return
            logger.info(f"{self.resource}: cache for {key} invalid or missing, fetching")

        await self._request(key, param)

    async def refresh(self, param: Any = None) -> OrchestratorState[T]:
        """
        Fetch from the network regardless of cache freshness.

        With no argument, refreshes the most recently requested parameter.
        A failed refresh keeps whatever data is already shown.
        """
        if param is None:
            param = self._active_param
        param = self.normalize_param(param)
        key = self.cache_key(param)
        logger.info(f"{self.resource}: refresh requested for {key}")
        self._active_param = param
        await self._request(key, param)
        return self._state

    async def _request(self, key: str, param: Any) -> None:
        self._active_key = key

        running = self._inflight.get(key)
        if running is not None and not running.done():
            logger.debug(f"{self.resource}: joining in-flight fetch for {key}")
            self._publish_loading()
            await asyncio.shield(running)
            return

        self._publish(replace(self._state, is_loading=True, last_error=None))
        task = asyncio.create_task(self._fetch_and_apply(key, param))
        self._inflight[key] = task
        try:
            await task
        finally:
            if self._inflight.get(key) is task:
                self._inflight.pop(key, None)

    async def _fetch_and_apply(self, key: str, param: Any) -> None:
        try:
            value = await self.fetch_remote(param)
        except FetchError as e:
            await self._apply_failure(key, e)
            return
        except (asyncio.CancelledError, Exception):
            if self._active_key == key:
                self._publish(replace(self._state, is_loading=False))
            raise
        await self._apply_success(key, value)

    async def _apply_success(self, key: str, value: T) -> None:
        fetched_at = self._clock()
        if self._entry is not None:
            try:
                fetched_at = await self._io(self._entry.write, key, value)
            except StorageError as e:
                logger.warning(f"{self.resource}: write-through for {key} failed: {e}")

        if self._active_key != key:
            logger.info(
                f"{self.resource}: dropping result for {key}, superseded by {self._active_key}"
            )
            return

        self._publish(
            OrchestratorState(
                data=value,
                key=key,
                last_fetched_at=datetime.fromtimestamp(fetched_at, tz=pytz.utc),
            )
        )
        logger.info(f"{self.resource}: fetched {self.describe(value)} for {key}")

    async def _apply_failure(self, key: str, error: FetchError) -> None:
        logger.warning(f"{self.resource}: fetch for {key} failed: {error.kind.value} ({error})")
        if self._active_key != key:
            logger.info(f"{self.resource}: dropping failure for {key}, superseded by {self._active_key}")
            return

        current = self._state
        if self._entry is not None and (current.data is None or current.key != key):
            stale, stored_at = await self._read_cache(key, best_effort=True)
            if self._active_key != key:
                return
            if stale is not None:
                logger.warning(f"{self.resource}: using expired cache for {key} as fallback")
                self._publish(
                    OrchestratorState(
                        data=stale,
                        key=key,
                        last_error=error,
                        last_fetched_at=stored_at,
                        from_cache=True,
                        is_stale=True,
                    )
                )
                return

        self._publish(replace(self._state, is_loading=False, last_error=error))

    # ------------------------------------------------------------------
    # Cache access
    # ------------------------------------------------------------------

    async def _io(self, func: Callable[..., R], *args: Any) -> R:
        """Run blocking cache I/O off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    async def _read_cache(self, key: str, *, best_effort: bool) -> tuple[T | None, datetime | None]:
        entry = self._entry
        if entry is None:
            return None, None

        def _read() -> tuple[T | None, datetime | None]:
            value = entry.read_best_effort(key) if best_effort else entry.read_if_valid(key)
            if value is None:
                return None, None
            return value, entry.stored_at(key)

        return await self._io(_read)

    async def clear(self) -> None:
        """Cancel in-flight work, drop this resource's cache slots and reset state."""
        self._active_key = None
        self._active_param = None
        for task in [*self._inflight.values(), *self._init_tasks.values()]:
            if not task.done():
                task.cancel()
        self._inflight.clear()
        self._init_tasks.clear()

        if self._entry is not None and self.cache_prefix is not None:
            try:
                cleared = await self._io(self._entry.store.clear_prefix, self.cache_prefix)
            except StorageError as e:
                logger.warning(f"{self.resource}: cache clear failed, stale slots remain: {e}")
            else:
                logger.info(f"{self.resource}: cleared {cleared} cache slot(s)")
        self._publish(OrchestratorState())
