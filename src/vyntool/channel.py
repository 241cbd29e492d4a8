"""Snapshot synchronization channel.

Keeps the store in step with the backend: one pull at startup, then every
pushed snapshot in arrival order. Each delivery is a whole replacement.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from vyntool._push import SnapshotSubscription
from vyntool.exceptions import VynError, VynPayloadError
from vyntool.ingestion.snapshot import build_update
from vyntool.state.events import SnapshotSource, SnapshotUpdate

_logger = logging.getLogger(__name__)

SnapshotFetch = Callable[[], Awaitable[Any]]
SnapshotSink = Callable[[SnapshotUpdate], Any]


class SnapshotChannel:
    """Pull-then-push delivery of snapshots into a sink.

    Parameters
    ----------
    fetch
        Coroutine function returning the raw current snapshot.
    subscription
        Push source; ``None`` disables the push stream.
    sink
        Receives every accepted :class:`SnapshotUpdate`.
    """

    def __init__(
        self,
        fetch: SnapshotFetch,
        subscription: SnapshotSubscription | None,
        sink: SnapshotSink,
    ) -> None:
        self._fetch = fetch
        self._subscription = subscription
        self._sink = sink
        self._generation = 0
        self._active = False
        self._subscribed = False
        self._push_applied = False
        self._lock = asyncio.Lock()

    @property
    def is_active(self) -> bool:
        return self._active

    async def start(self) -> None:
        """Subscribe to pushes, then pull the current snapshot once.

        A running channel is stopped first, so at most one subscription is
        ever open. ``start`` and ``stop`` are serialized; the pull runs
        outside the lock so a slow backend never blocks teardown.
        """
        async with self._lock:
            await self._stop_locked()

            self._generation += 1
            generation = self._generation
            self._active = True
            self._push_applied = False

            if self._subscription is not None:
                await self._open_subscription(self._subscription, generation)

        await self._pull(generation)

    async def stop(self) -> None:
        """Release the subscription. Safe to call more than once."""
        async with self._lock:
            await self._stop_locked()

    async def _open_subscription(self, subscription: SnapshotSubscription, generation: int) -> None:
        loop = asyncio.get_running_loop()
        callback = functools.partial(self._on_push, generation)
        opening = loop.run_in_executor(None, subscription.start, callback)
        try:
            await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The executor keeps running; release whatever it opens.
            self._active = False
            self._generation += 1
            opening.add_done_callback(functools.partial(self._release_abandoned, subscription))
            raise
        except Exception:
            _logger.warning("Snapshot push subscription failed to start", exc_info=True)
            return

        if self._is_current(generation):
            self._subscribed = True
            return
        _logger.debug("Channel stopped while subscribing; releasing subscription")
        await self._release(subscription)

    def _release_abandoned(self, subscription: SnapshotSubscription, opening: asyncio.Future[Any]) -> None:
        if opening.cancelled() or opening.exception() is not None:
            return
        _logger.debug("Releasing subscription opened by a cancelled start")

        def _stop() -> None:
            try:
                subscription.stop()
            except Exception:
                _logger.warning("Snapshot push subscription failed to stop", exc_info=True)

        asyncio.get_running_loop().run_in_executor(None, _stop)

    async def _stop_locked(self) -> None:
        if not self._active:
            return
        self._active = False
        # Callbacks already queued on the loop carry the old generation.
        self._generation += 1

        subscription = self._subscription if self._subscribed else None
        self._subscribed = False
        if subscription is not None:
            await self._release(subscription)

    async def _release(self, subscription: SnapshotSubscription) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, subscription.stop)
        except Exception:
            _logger.warning("Snapshot push subscription failed to stop", exc_info=True)

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    async def _pull(self, generation: int) -> None:
        try:
            raw = await self._fetch()
        except VynError as exc:
            _logger.warning("Initial snapshot pull failed; keeping current snapshot: %s", exc)
            return

        if not self._is_current(generation):
            _logger.debug("Discarding snapshot pull from a stopped channel")
            return
        if self._push_applied:
            _logger.debug("Discarding snapshot pull; a pushed snapshot already arrived")
            return

        try:
            update = build_update(raw, SnapshotSource.PULL)
        except VynPayloadError as exc:
            _logger.warning("Initial snapshot pull was malformed; keeping current snapshot: %s", exc)
            return
        self._sink(update)

    def _on_push(self, generation: int, raw: dict[str, Any]) -> None:
        if not self._is_current(generation):
            _logger.debug("Ignoring snapshot push delivered after teardown")
            return
        try:
            update = build_update(raw, SnapshotSource.PUSH)
        except VynPayloadError as exc:
            _logger.warning("Dropping malformed snapshot push: %s", exc)
            return
        self._push_applied = True
        self._sink(update)
