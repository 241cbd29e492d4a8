"""In-memory snapshot store.

This is the only component allowed to change the current snapshot. Updates
are whole-value replacements: the store never merges fields from the
previous snapshot into the next one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from vyntool.models.snapshot import Snapshot
from vyntool.state.events import SnapshotSource, SnapshotUpdate
from vyntool.state.views import SnapshotViews

_logger = logging.getLogger(__name__)


class StoreState(BaseModel):
    """One consistent reading of the store.

    Snapshot, views and version are swapped together, so readers never see
    views computed for a different snapshot.
    """

    model_config = ConfigDict(frozen=True)

    version: int = 0
    snapshot: Snapshot = Field(default_factory=Snapshot.empty)
    views: SnapshotViews = Field(default_factory=SnapshotViews)
    source: SnapshotSource = SnapshotSource.DEFAULT


StoreListener = Callable[[StoreState], None]


class SnapshotStore:
    """Holds the current snapshot and notifies listeners on replacement.

    Given the same sequence of updates, the store ends with exactly the
    last delivered snapshot.
    """

    def __init__(self) -> None:
        self._state = StoreState()
        self._listeners: list[StoreListener] = []

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def current(self) -> Snapshot:
        return self._state.snapshot

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def views(self) -> SnapshotViews:
        return self._state.views

    def replace(self, update: SnapshotUpdate) -> StoreState:
        """Swap in *update* wholesale and notify listeners."""
        snapshot = update.snapshot
        state = StoreState(
            version=self._state.version + 1,
            snapshot=snapshot,
            views=SnapshotViews.from_snapshot(snapshot),
            source=update.source,
        )
        self._state = state
        _logger.debug(
            "Snapshot replaced version=%d source=%s phase=%s modules=%d",
            state.version,
            update.source,
            snapshot.phase,
            len(snapshot.modules),
        )

        for listener in list(self._listeners):
            # A newer replacement made from inside a listener supersedes this one.
            if self._state is not state:
                break
            try:
                listener(state)
            except Exception:
                _logger.debug("Snapshot listener failed", exc_info=True)
        return state

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
