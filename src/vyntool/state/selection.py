"""Selection controller.

Tracks which module the operator is focused on. The selection is always
either ``None`` or an identifier present in the current snapshot's modules.
"""

from __future__ import annotations

import logging

from vyntool.models.snapshot import Module, Snapshot
from vyntool.state.views import find_module

_logger = logging.getLogger(__name__)


def revalidate_selection(selected_id: str | None, snapshot: Snapshot) -> str | None:
    """Return *selected_id* if it still exists in *snapshot*, else ``None``."""
    if selected_id is None:
        return None
    if find_module(snapshot, selected_id) is None:
        return None
    return selected_id


def first_module_id(snapshot: Snapshot) -> str | None:
    if not snapshot.modules:
        return None
    return snapshot.modules[0].id


class SelectionController:
    """Holds the focused module id and the one-shot auto-select arm."""

    def __init__(self) -> None:
        self._selected_id: str | None = None
        self._auto_select_armed = False

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def auto_select_armed(self) -> bool:
        return self._auto_select_armed

    def selected_module(self, snapshot: Snapshot) -> Module | None:
        return find_module(snapshot, self._selected_id)

    def select(self, module_id: str | None, snapshot: Snapshot) -> bool:
        """User selection. Unknown ids are ignored; ``None`` clears.

        Any explicit choice disarms auto-select.
        """
        if module_id is not None and find_module(snapshot, module_id) is None:
            _logger.debug("Ignoring selection of unknown module id=%s", module_id)
            return False
        self._selected_id = module_id
        self._auto_select_armed = False
        return True

    def arm_auto_select(self) -> None:
        self._auto_select_armed = True

    def disarm_auto_select(self) -> None:
        self._auto_select_armed = False

    def revalidate(self, snapshot: Snapshot) -> str | None:
        previous = self._selected_id
        self._selected_id = revalidate_selection(previous, snapshot)
        if previous is not None and self._selected_id is None:
            _logger.debug("Selected module id=%s vanished; selection cleared", previous)
        return self._selected_id

    def apply_auto_select(self, snapshot: Snapshot) -> str | None:
        """Select the first discovered module if armed and nothing is selected.

        The arm is released once a module is picked; with no modules it stays
        armed for the next snapshot.
        """
        if not self._auto_select_armed:
            return self._selected_id
        if self._selected_id is not None:
            self._auto_select_armed = False
            return self._selected_id
        candidate = first_module_id(snapshot)
        if candidate is not None:
            self._selected_id = candidate
            self._auto_select_armed = False
        return self._selected_id
